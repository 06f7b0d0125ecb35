"""Closed layout registry over Jinja2 templates and page rendering"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Iterator, Optional

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, select_autoescape

from mdsite.config import Settings
from mdsite.core.models import Document, Index


BUILTIN_LAYOUTS: dict[str, str] = {
    "default.html": """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{% if page.title %}{{ page.title }} | {% endif %}{{ site.title }}</title>
<link rel="stylesheet" href="{{ site.url }}/assets/highlight.css">
</head>
<body>
{% block content %}{{ content | safe }}{% endblock %}
</body>
</html>
""",
    "post.html": """\
{% extends "default.html" %}
{% block content %}
<article>
<h1>{{ page.title }}</h1>
<time datetime="{{ page.date }}">{{ page.date }}</time>
{{ content | safe }}
{% if page.tags %}
<ul class="tags">
{% for tag in page.tags %}<li>{{ tag }}</li>
{% endfor %}
</ul>
{% endif %}
<nav>
{% if page.previous %}<a rel="prev" href="{{ site.url }}{{ page.previous.permalink }}">{{ page.previous.title }}</a>
{% endif %}
{% if page.next %}<a rel="next" href="{{ site.url }}{{ page.next.permalink }}">{{ page.next.title }}</a>
{% endif %}
</nav>
</article>
{% endblock %}
""",
}


def summary(doc: Document) -> dict[str, Any]:
    """Small navigation record for index listings and prev/next links."""
    return {
        "id": doc.id,
        "title": doc.title,
        "date": doc.date,
        "permalink": doc.permalink,
        "excerpt": doc.excerpt,
        "tags": list(doc.tags),
    }


class LayoutRegistry(Mapping):
    """Layout name -> template file, fixed when the build is configured."""

    def __init__(self, layouts_dir: Optional[Path] = None):
        loaders = [DictLoader(BUILTIN_LAYOUTS)]
        templates = {Path(name).stem: name for name in BUILTIN_LAYOUTS}
        if layouts_dir is not None and layouts_dir.is_dir():
            loaders.insert(0, FileSystemLoader(str(layouts_dir)))
            templates.update({p.stem: p.name for p in sorted(layouts_dir.glob("*.html"))})
        self._templates = templates
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def __getitem__(self, name: str) -> str:
        return self._templates[name]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._templates))

    def __len__(self) -> int:
        return len(self._templates)

    def render(self, name: str, context: dict[str, Any]) -> str:
        return self.env.get_template(self[name]).render(**context)


def site_context(index: Index, settings: Settings) -> dict[str, Any]:
    """Site-wide template variables, computed once per build."""
    return {
        "title": settings.site_title,
        "url": settings.site_url.rstrip("/"),
        "posts": [summary(d) for d in index.documents],
        "tags": {tag: [summary(d) for d in docs] for tag, docs in index.tags.items()},
    }


def page_context(doc: Document, index: Index, content: str) -> dict[str, Any]:
    """A Document as a plain dict, plus rendered content and prev/next navigation."""
    older, newer = index.older(doc), index.newer(doc)
    page = doc.model_dump()
    page.update({
        "content": content,
        "url": doc.permalink,
        "previous": summary(older) if older else None,
        "next": summary(newer) if newer else None,
    })
    return page


def render_page(
    doc: Document,
    content: str,
    index: Index,
    registry: LayoutRegistry,
    site: dict[str, Any],
    ) -> str:
    """Merge a Document with its layout; documents without a layout render as bare content."""
    if doc.layout is None:
        return content
    page = page_context(doc, index, content)
    return registry.render(doc.layout, {"page": page, "site": site, "content": content})
