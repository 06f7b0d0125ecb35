"""Cross-document indices: chronological order and tag groupings"""

from collections import defaultdict
from typing import Iterable

from mdsite.core.models import Document, Index


def chronological(documents: Iterable[Document]) -> list[Document]:
    """Newest first; same-day documents by ascending slug."""
    by_slug = sorted(documents, key=lambda d: d.slug)
    return sorted(by_slug, key=lambda d: d.date, reverse=True)


def build_index(documents: Iterable[Document]) -> Index:
    """Build the Index from the closed set of built documents.

    Raises ValueError if two documents share an id; the scanner guarantees
    this never happens for documents produced by the pipeline.
    """
    ordered = chronological(documents)
    ids = [d.id for d in ordered]
    if len(set(ids)) != len(ids):
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        raise ValueError(f"documents with duplicate ids: {', '.join(dupes)}")

    tags: dict[str, list[Document]] = defaultdict(list)
    for doc in ordered:
        for tag in doc.tags:
            tags[tag].append(doc)

    return Index(
        documents=tuple(ordered),
        tags={tag: tuple(tags[tag]) for tag in sorted(tags)},
    )
