"""Unit tests for render/markdown.py"""

import datetime as dt
from pathlib import Path

import pytest

from mdsite.config import Settings
from mdsite.core.builder import build_document
from mdsite.core.extract.code import PH_OPEN
from mdsite.core.models import SourceFile
from mdsite.render.markdown import MarkdownConverter


@pytest.fixture(name="convert")
def convert_fixture():
    source = SourceFile(path=Path("2012-01-28-post.md"), date=dt.date(2012, 1, 28), slug="post", ext=".md")
    converter = MarkdownConverter("gfm-like")

    def _convert(raw: str) -> str:
        doc, _ = build_document(source, raw, Settings(), {"post"})
        return converter.convert(doc)
    return _convert


def test_reference_link_rendered(convert):
    """A resolved reference becomes an <a> with href and title."""
    html = convert('See [here][1].\n\n[1]: http://example.com "Example"\n')
    assert '<a href="http://example.com" title="Example">here</a>' in html


def test_block_placeholder_replaced_not_wrapped(convert):
    """A fenced block replaces its placeholder paragraph; no <p> wraps the code."""
    html = convert("Text\n```python\nx = 1\n```\nMore\n")
    assert "<p>Text</p>" in html
    assert "<p>More</p>" in html
    assert '<div class="highlight">' in html
    assert "<p><div" not in html
    assert PH_OPEN not in html


def test_inline_code_is_atomic(convert):
    """Link syntax inside inline code is not turned into a link."""
    html = convert("Write `[a][b]` literally.\n\n[b]: /nope\n")
    assert "<code>[a][b]</code>" in html
    assert "/nope" not in html


def test_fenced_definition_lookalike_rendered_as_code(convert):
    """[foo]: bar inside a fence is shown as code, and [x][foo] stays literal."""
    html = convert("Use [x][foo].\n\n```\n[foo]: bar\n```\n")
    assert "[foo]: bar" in html
    assert "[x][foo]" in html
    assert "<a " not in html


def test_unresolved_reference_literal_brackets(convert):
    html = convert("matrix m[i][j]\n")
    assert "m[i][j]" in html


def test_code_in_list_item(convert):
    """Placeholders inside list items are substituted too."""
    html = convert("- item\n\n  ```\n  code\n  ```\n")
    assert "code" in html
    assert PH_OPEN not in html


def test_indented_code_is_not_rewritten(convert):
    """Backticks and bracket pairs inside an indented block render as literal code."""
    html = convert("Shell:\n\n    echo `date`\n    $a[x][y]\n\n[y]: http://evil\n")
    assert "<code>echo `date`\n$a[x][y]\n</code>" in html
    assert "http://evil" not in html


def test_shortcut_reference_rendered(convert):
    html = convert("See [foo].\n\n[foo]: http://example.com\n")
    assert '<a href="http://example.com">foo</a>' in html
