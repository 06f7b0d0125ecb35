"""Permalink pattern expansion and permalink -> output path mapping"""

import re
from pathlib import PurePosixPath

from mdsite.core.errors import InvalidPermalink
from mdsite.core.models import SourceFile


TOKEN_RE = re.compile(r':(?P<name>[a-z_]+)')
TOKENS = ('year', 'short_year', 'month', 'i_month', 'day', 'i_day', 'slug', 'title')


def check_pattern(pattern: str) -> str:
    """Validate a permalink pattern; returns it unchanged."""
    if not pattern.startswith('/'):
        raise ValueError(f"permalink pattern must start with '/': {pattern!r}")
    unknown = [m['name'] for m in TOKEN_RE.finditer(pattern) if m['name'] not in TOKENS]
    if unknown:
        raise ValueError(f"unknown permalink token(s) {', '.join(':' + u for u in unknown)} in {pattern!r}")
    return pattern


def _normalize(url: str) -> str:
    url = re.sub(r'/{2,}', '/', url)
    return url if url.startswith('/') else '/' + url


def expand_permalink(pattern: str, source: SourceFile) -> str:
    """Substitute date parts and slug into pattern, e.g. /:year/:month/:day/:slug/."""
    d = source.date
    values = {
        'year':       f'{d.year:04d}',
        'short_year': f'{d.year % 100:02d}',
        'month':      f'{d.month:02d}',
        'i_month':    str(d.month),
        'day':        f'{d.day:02d}',
        'i_day':      str(d.day),
        'slug':       source.slug,
        'title':      source.slug,
    }
    return _normalize(TOKEN_RE.sub(lambda m: values[m['name']], check_pattern(pattern)))


def permalink_for(source: SourceFile, metadata: dict, pattern: str) -> str:
    """A front-matter permalink wins over the configured pattern.

    Raises InvalidPermalink when the result would leave the output directory.
    """
    declared = metadata.get('permalink')
    url = _normalize(str(declared)) if declared else expand_permalink(pattern, source)
    if '..' in url.split('/'):
        raise InvalidPermalink(f"permalink {url!r} contains a '..' segment", source.path)
    return url


def output_path(permalink: str) -> PurePosixPath:
    """Relative output file for a permalink: directories get index.html."""
    rel = PurePosixPath(permalink.lstrip('/'))
    if permalink.endswith('/') or rel.suffix.lower() not in ('.html', '.htm'):
        return rel / 'index.html'
    return rel
