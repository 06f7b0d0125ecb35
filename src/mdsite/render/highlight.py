"""Pygments highlighting for extracted code blocks"""

from html import escape

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from mdsite.core.models import CodeBlock


CSS_CLASS = "highlight"


def _lexer(language: str | None):
    if not language:
        return None
    try:
        return get_lexer_by_name(language, stripnl=False, ensurenl=True)
    except ClassNotFound:
        return None


def render_inline(block: CodeBlock) -> str:
    """<code> span; one surrounding space is stripped when both ends have one."""
    text = block.text
    if len(text) > 2 and text.startswith(' ') and text.endswith(' ') and text.strip():
        text = text[1:-1]
    return f"<code>{escape(text, quote=False)}</code>"


def render_block(block: CodeBlock, style: str = "default") -> str:
    """Highlighted markup for a fenced block; pass-through when the language is unknown.

    raw blocks are emitted verbatim; literal blocks include their fence lines.
    """
    if block.flag == "raw":
        return block.text
    code = block.text
    if block.flag == "literal":
        if code and not code.endswith("\n"):
            code += "\n"
        code = f"{block.open_marker}\n{code}{block.close_marker}\n"

    lexer = _lexer(block.language)
    if lexer is None:
        lang = f' class="language-{escape(block.language)}"' if block.language else ""
        return f'<pre class="{CSS_CLASS}"><code{lang}>{escape(code, quote=False)}</code></pre>\n'

    formatter = HtmlFormatter(
        cssclass=CSS_CLASS,
        style=style,
        linenos="table" if block.flag == "linenos" else False,
    )
    return highlight(code, lexer, formatter)


def stylesheet(style: str = "default") -> str:
    """CSS rules for the highlight class in the given Pygments style."""
    return HtmlFormatter(style=style, cssclass=CSS_CLASS).get_style_defs(f".{CSS_CLASS}")
