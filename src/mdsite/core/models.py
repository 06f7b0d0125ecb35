"""Data models for the scan, extract, build and index stages"""

import datetime as dt
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr


class SourceFile(BaseModel):
    """A post file on disk with identity parsed from its name."""
    model_config = ConfigDict(frozen=True)

    path: Path
    date: dt.date
    slug: str
    ext:  str

    @property
    def id(self) -> str:
        return f"{self.date.isoformat()}-{self.slug}"


class CodeBlock(BaseModel):
    """A fenced region or inline span lifted out of the body verbatim."""
    model_config = ConfigDict(frozen=True)

    index:        int
    text:         str                   # verbatim, whitespace preserved
    language:     Optional[str] = None
    flag:         Optional[str] = None  # literal | raw | linenos
    inline:       bool = False
    open_marker:  str = ""              # raw opening line, e.g. "```python literal"
    close_marker: str = ""


class Segment(BaseModel):
    """One ordered piece of a body: prose text or a reference to a CodeBlock."""
    model_config = ConfigDict(frozen=True)

    kind:  Literal["prose", "code"]
    text:  str = ""
    block: Optional[int] = None


class ReferenceDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    label:  str                         # as written
    key:    str                         # normalized lookup key
    target: str
    title:  Optional[str] = None


class Link(BaseModel):
    """A reference-style usage resolved against its definition."""
    model_config = ConfigDict(frozen=True)

    text:   str
    label:  str
    target: str
    title:  Optional[str] = None


class Document(BaseModel):
    """A fully built post; exposed to layouts as a plain dict via model_dump()."""
    model_config = ConfigDict(frozen=True)

    id:           str
    date:         dt.date
    slug:         str
    source_path:  str
    raw_body:     str
    metadata:     dict[str, Any] = {}
    segments:     list[Segment] = []
    code_blocks:  list[CodeBlock] = []
    references:   list[ReferenceDefinition] = []
    links:        list[Link] = []
    body:         str                   # resolved body with code placeholders
    title:        str
    excerpt:      str = ""
    permalink:    str
    layout:       Optional[str] = None
    tags:         list[str] = []
    content_hash: str


class Issue(BaseModel):
    """A soft diagnostic; the document still builds."""
    code:    str
    path:    str
    message: str


class Failure(BaseModel):
    """A fatal per-document diagnostic; the document is excluded."""
    code:    str
    path:    str
    message: str


class Index(BaseModel):
    """Read-only cross-document view built once per build after all documents exist."""
    model_config = ConfigDict(frozen=True)

    documents: tuple[Document, ...] = ()          # newest first, ties by slug
    tags:      dict[str, tuple[Document, ...]] = {}

    _positions: dict[str, int] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._positions = {d.id: i for i, d in enumerate(self.documents)}

    def get(self, doc_id: str) -> Optional[Document]:
        pos = self._positions.get(doc_id)
        return None if pos is None else self.documents[pos]

    def newer(self, doc: Document) -> Optional[Document]:
        """Predecessor in the chronological order (the next more recent post)."""
        pos = self._positions[doc.id]
        return self.documents[pos - 1] if pos > 0 else None

    def older(self, doc: Document) -> Optional[Document]:
        """Successor in the chronological order (the next earlier post)."""
        pos = self._positions[doc.id]
        return self.documents[pos + 1] if pos + 1 < len(self.documents) else None


class DocResult(BaseModel):
    """Outcome of processing one source file end-to-end on a worker."""
    path:     str
    document: Optional[Document] = None
    failure:  Optional[Failure] = None
    issues:   list[Issue] = []


class BuildReport(BaseModel):
    """Partial-or-complete build outcome: documents, failures, issues, written files."""
    index:    Index = Index()
    failures: list[Failure] = []
    issues:   list[Issue] = []
    written:  list[str] = []

    @property
    def documents(self) -> tuple[Document, ...]:
        return self.index.documents

    @property
    def ok(self) -> bool:
        return not self.failures and not self.issues

    def exit_code(self, strict: bool) -> int:
        """Non-zero only in strict mode when anything went wrong."""
        return 1 if strict and not self.ok else 0

    def summary(self) -> dict:
        return {
            "documents": len(self.documents),
            "failures": [f.model_dump() for f in self.failures],
            "issues": [i.model_dump() for i in self.issues],
        }
