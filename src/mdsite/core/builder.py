"""Document model builder: front matter + code extraction + references -> Document"""

import re
from pathlib import Path
from typing import Any, Collection

import structlog

from mdsite.config import Settings
from mdsite.core.errors import MISSING_LAYOUT, UNRESOLVED_REFERENCE, MissingLayout, UnknownLayout
from mdsite.core.extract.code import PH_OPEN, extract_code, restore_inline
from mdsite.core.extract.references import resolve_references
from mdsite.core.frontmatter import split_front_matter
from mdsite.core.models import CodeBlock, Document, Issue, SourceFile
from mdsite.core.permalink import permalink_for
from mdsite.core.utils.hashing import sha256


logger = structlog.get_logger(__name__)


def title_from_slug(slug: str) -> str:
    """'hello-big_world' -> 'Hello big world'."""
    text = re.sub(r'[-_]+', ' ', slug).strip()
    return text[:1].upper() + text[1:]


def derive_excerpt(text: str, blocks: list[CodeBlock], separator: str) -> str:
    """Leading prose of a resolved body, cut at the separator or the first code block."""
    # Inline spans are part of the prose; only a block placeholder ends it.
    restored = restore_inline(text.lstrip(), blocks).replace('\r\n', '\n')
    separator = separator.replace('\r\n', '\n')
    cuts = [i for i in (
        restored.find(separator) if separator else -1,
        restored.find(PH_OPEN),
    ) if i >= 0]
    return (restored[:min(cuts)] if cuts else restored).strip()


def derive_tags(value: Any) -> list[str]:
    """Normalize a tags value: list -> strings, string -> whitespace split."""
    if value is None:
        return []
    if isinstance(value, list):
        tags = [str(v) for v in value if v is not None]
    elif isinstance(value, str):
        tags = value.split()
    else:
        tags = [str(value)]
    return list(dict.fromkeys(t for t in tags if t))


def select_layout(
    metadata: dict[str, Any],
    settings: Settings,
    layouts: Collection[str],
    path: Path,
    ) -> tuple[str | None, list[Issue]]:
    """Return (layout, issues); raise UnknownLayout, or MissingLayout in strict mode."""
    declared = metadata.get('layout')
    name = str(declared) if declared is not None else settings.default_layout
    if name:
        if name not in layouts:
            known = ', '.join(sorted(layouts)) or 'none'
            raise UnknownLayout(f"layout {name!r} is not defined (known: {known})", path)
        return name, []

    message = "no layout declared and no default_layout configured"
    if settings.strict:
        raise MissingLayout(message, path)
    logger.warning("build.missing_layout", path=str(path))
    return None, [Issue(code=MISSING_LAYOUT, path=str(path), message=message)]


def build_document(
    source: SourceFile,
    raw: str,
    settings: Settings,
    layouts: Collection[str],
    ) -> tuple[Document, list[Issue]]:
    """Build a Document from one source file's raw text.

    Raises a PipelineError subclass for fatal per-document problems; soft
    problems come back as Issues alongside the Document.
    """
    path = source.path
    metadata, body = split_front_matter(raw, path)
    extraction = extract_code(body, path)
    resolution = resolve_references(extraction.text, path)

    issues = [
        Issue(code=UNRESOLVED_REFERENCE, path=str(path), message=f"no definition for reference [{label}]")
        for label in resolution.unresolved
    ]
    layout, layout_issues = select_layout(metadata, settings, layouts, path)
    issues.extend(layout_issues)

    excerpt = metadata.get('excerpt')
    if excerpt is None:
        excerpt = derive_excerpt(resolution.text, extraction.blocks, settings.excerpt_separator)

    document = Document(
        id=source.id,
        date=source.date,
        slug=source.slug,
        source_path=str(path),
        raw_body=body,
        metadata=metadata,
        segments=extraction.segments,
        code_blocks=extraction.blocks,
        references=resolution.definitions,
        links=resolution.links,
        body=resolution.text,
        title=str(metadata.get('title') or title_from_slug(source.slug)),
        excerpt=str(excerpt),
        permalink=permalink_for(source, metadata, settings.permalink),
        layout=layout,
        tags=derive_tags(metadata.get('tags')),
        content_hash=sha256(raw),
    )
    return document, issues
