"""Body conversion with markdown-it and code placeholder substitution"""

import re

from markdown_it import MarkdownIt

from mdsite.core.extract.code import PLACEHOLDER_RE
from mdsite.core.models import CodeBlock, Document
from mdsite.render.highlight import render_block, render_inline


# A block placeholder markdown-it wrapped in its own paragraph.
PARAGRAPH_RE = re.compile(r'<p>\s*(' + PLACEHOLDER_RE.pattern + r')\s*</p>\n?')


def make_parser(preset: str = "gfm-like") -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def substitute_code(html: str, blocks: list[CodeBlock], style: str = "default") -> str:
    """Swap every placeholder in converted markup for its highlighted code."""
    def block_repl(m: re.Match) -> str:
        return render_block(blocks[int(m['index'])], style)

    def any_repl(m: re.Match) -> str:
        block = blocks[int(m['index'])]
        return render_inline(block) if block.inline else render_block(block, style)

    html = PARAGRAPH_RE.sub(block_repl, html)
    return PLACEHOLDER_RE.sub(any_repl, html)


class MarkdownConverter:
    """Resolved body with placeholders -> final body markup."""

    def __init__(self, preset: str = "gfm-like", style: str = "default"):
        self.parser = make_parser(preset)
        self.style = style

    def convert(self, document: Document) -> str:
        html = self.parser.render(document.body)
        return substitute_code(html, document.code_blocks, self.style)
