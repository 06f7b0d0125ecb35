"""Front-matter splitting: YAML metadata block vs. body text"""

import datetime as dt
from pathlib import Path
from typing import Any, Optional

import yaml

from mdsite.core.errors import MalformedFrontMatter


OPEN_DELIMITER = '---'
CLOSE_DELIMITERS = ('---', '...')
SCALARS = (str, int, float, bool, dt.date, type(None))


def _check_flat(metadata: dict, path: Optional[Path]) -> None:
    """Reject values that are not scalars or flat lists of scalars."""
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise MalformedFrontMatter(f"metadata key {key!r} is not a string", path)
        if isinstance(value, list):
            if all(isinstance(v, SCALARS) for v in value):
                continue
        elif isinstance(value, SCALARS):
            continue
        raise MalformedFrontMatter(f"metadata key {key!r} must be a scalar or flat list", path)


def split_front_matter(text: str, path: Optional[Path] = None) -> tuple[dict[str, Any], str]:
    """Return (metadata, body). Without an opening delimiter the body is text unchanged."""
    lines = text.removeprefix('\ufeff').splitlines(keepends=True)
    if not lines or lines[0].rstrip('\r\n').rstrip() != OPEN_DELIMITER:
        return {}, text

    for i in range(1, len(lines)):
        if lines[i].rstrip('\r\n').rstrip() in CLOSE_DELIMITERS:
            block = ''.join(lines[1:i])
            body = ''.join(lines[i + 1:])
            break
    else:
        raise MalformedFrontMatter("front matter opened with '---' but never closed", path)

    try:
        metadata = yaml.safe_load(block) if block.strip() else {}
    except yaml.YAMLError as e:
        raise MalformedFrontMatter(f"invalid YAML front matter: {e}", path) from e
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise MalformedFrontMatter(
            f"front matter must be a mapping, got {type(metadata).__name__}", path
        )
    _check_flat(metadata, path)
    return metadata, body
