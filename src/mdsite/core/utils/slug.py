"""Slug generation for new post filenames"""

import re
import unicodedata


def slugify(text: str) -> str:
    """Convert a title to a lowercase, ASCII, hyphen-separated slug."""
    text = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    text = re.sub(r'[^\w\s-]', '', text.lower())
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')
