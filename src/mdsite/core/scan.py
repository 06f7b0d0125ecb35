"""Source discovery and date+slug identity from YYYY-MM-DD-slug.ext filenames"""

import datetime as dt
import re
from collections import defaultdict
from pathlib import Path
from typing import Iterable, Iterator

import structlog

from mdsite.core.errors import DuplicateSlug, InvalidFilename, PipelineError
from mdsite.core.models import SourceFile


logger = structlog.get_logger(__name__)

FILENAME_RE = re.compile(r'^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})-(?P<slug>.+)$')
DEFAULT_EXTENSIONS = ('.md', '.markdown', '.mdx')


def discover_files(root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    """Return sorted candidate post files under root, skipping dot-files and dot-dirs."""
    exts = {e.lower() for e in extensions}
    if root.is_file():
        return [root] if root.suffix.lower() in exts else []
    return sorted(
        p for p in root.rglob('*')
        if p.is_file()
        and p.suffix.lower() in exts
        and not any(part.startswith('.') for part in p.relative_to(root).parts)
    )


def parse_filename(path: Path) -> SourceFile:
    """Parse a YYYY-MM-DD-slug.ext name into a SourceFile or raise InvalidFilename."""
    m = FILENAME_RE.match(path.stem)
    if not m:
        raise InvalidFilename(f"expected YYYY-MM-DD-slug{path.suffix}, got {path.name!r}", path)
    try:
        date = dt.date(int(m['year']), int(m['month']), int(m['day']))
    except ValueError as e:
        raise InvalidFilename(f"invalid date in {path.name!r}: {e}", path) from e
    return SourceFile(path=path, date=date, slug=m['slug'], ext=path.suffix)


def scan_sources(root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> Iterator[SourceFile]:
    """Lazily yield SourceFiles under root; raises on the first invalid name or collision.

    Calling again rescans the filesystem.
    """
    seen: dict[tuple[dt.date, str], Path] = {}
    for path in discover_files(root, extensions):
        source = parse_filename(path)
        key = (source.date, source.slug)
        if key in seen:
            raise DuplicateSlug(f"{source.id} already defined by {seen[key].name}", path)
        seen[key] = path
        yield source


def collect_sources(
    root: Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ) -> tuple[list[SourceFile], list[PipelineError]]:
    """Scan root without stopping: return (valid sources, per-file errors).

    Every file in a colliding (date, slug) group is excluded and reported.
    """
    errors: list[PipelineError] = []
    groups: dict[tuple[dt.date, str], list[SourceFile]] = defaultdict(list)

    for path in discover_files(root, extensions):
        try:
            source = parse_filename(path)
        except InvalidFilename as e:
            logger.warning("scan.invalid_filename", path=str(path), error=e.message)
            errors.append(e)
            continue
        groups[(source.date, source.slug)].append(source)

    sources: list[SourceFile] = []
    for group in groups.values():
        if len(group) == 1:
            sources.append(group[0])
            continue
        names = ', '.join(s.path.name for s in group)
        for s in group:
            logger.warning("scan.duplicate_slug", path=str(s.path), id=s.id)
            errors.append(DuplicateSlug(f"{s.id} is shared by {names}", s.path))

    sources.sort(key=lambda s: str(s.path))
    return sources, errors
