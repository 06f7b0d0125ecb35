"""Fenced code and inline span extraction into opaque placeholders"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from mdsite.core.errors import UnbalancedCodeFence
from mdsite.core.models import CodeBlock, Segment


FENCE_OPEN_RE = re.compile(r'^(?P<indent>[ \t]*)(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>.*?)[ \t]*$')
FENCE_CLOSE_RE = re.compile(r'^[ \t]*(?P<fence>`{3,}|~{3,})[ \t]*$')
LIQUID_OPEN_RE = re.compile(
    r'^(?P<indent>[ \t]*)\{%-?\s*highlight\s+(?P<info>[^%]*?)\s*-?%\}[ \t]*$'
)
LIQUID_CLOSE_RE = re.compile(r'^[ \t]*\{%-?\s*endhighlight\s*-?%\}[ \t]*$')
INLINE_RE = re.compile(r'(?<!`)(?P<ticks>`+)(?!`)(?P<text>.+?)(?<!`)(?P=ticks)(?!`)')
INDENTED_RE = re.compile(r'^(?: {4}| {0,3}\t)')
LIST_ITEM_RE = re.compile(r'^[ \t]*(?:[-+*]|\d{1,9}[.)])[ \t]+\S')

# Private-use code points; markdown-it passes them through untouched.
PH_OPEN, PH_CLOSE = "\ue000", "\ue001"
PLACEHOLDER_RE = re.compile(PH_OPEN + r"(?P<kind>code|span)(?P<index>\d+)" + PH_CLOSE)


def placeholder(block: CodeBlock) -> str:
    """Opaque token that stands in for a CodeBlock until rendering."""
    kind = 'span' if block.inline else 'code'
    return f"{PH_OPEN}{kind}{block.index}{PH_CLOSE}"


def restore_inline(text: str, blocks: list[CodeBlock]) -> str:
    """Put inline spans back as their original backtick source; block placeholders are kept."""
    def repl(m: re.Match) -> str:
        block = blocks[int(m['index'])]
        if not block.inline:
            return m.group(0)
        return f'{block.open_marker}{block.text}{block.close_marker}'

    return PLACEHOLDER_RE.sub(repl, text)


@dataclass
class Extraction:
    """Body with code replaced by placeholders, plus the lifted blocks in order."""
    text:     str
    blocks:   list[CodeBlock] = field(default_factory=list)
    segments: list[Segment] = field(default_factory=list)


def _parse_info(info: str) -> tuple[Optional[str], Optional[str]]:
    """Split a fence info string into (language, flag)."""
    parts = info.split()
    language = parts[0] if parts else None
    flag = parts[1] if len(parts) > 1 else None
    return language, flag


def _strip_eol(line: str) -> str:
    return line.rstrip('\r\n')


def _find_close(lines: list[str], start: int, fence: Optional[str]) -> int:
    """Index of the closing marker line for an opener at start-1, or -1."""
    for j in range(start, len(lines)):
        line = _strip_eol(lines[j])
        if fence is None:
            if LIQUID_CLOSE_RE.match(line):
                return j
            continue
        m = FENCE_CLOSE_RE.match(line)
        if m and m['fence'][0] == fence[0] and len(m['fence']) >= len(fence):
            return j
    return -1


def _indented_block(lines: list[str], start: int) -> int:
    """End (exclusive) of an indented code block starting at start; trailing blank lines excluded."""
    end = j = start
    while j < len(lines):
        line = _strip_eol(lines[j])
        if INDENTED_RE.match(line) and line.strip():
            end = j + 1
        elif line.strip():
            break
        j += 1
    return end


def _dedent(line: str) -> str:
    return INDENTED_RE.sub('', line, count=1) if line.strip() else line.lstrip(' \t')


def _extract_inline(prose: str, blocks: list[CodeBlock]) -> str:
    """Replace single-line backtick spans in prose with atomic placeholders."""
    def repl(m: re.Match) -> str:
        block = CodeBlock(
            index=len(blocks),
            text=m['text'],
            inline=True,
            open_marker=m['ticks'],
            close_marker=m['ticks'],
        )
        blocks.append(block)
        return placeholder(block)

    return INLINE_RE.sub(repl, prose)


def _segments(text: str) -> list[Segment]:
    segments: list[Segment] = []
    pos = 0
    for m in PLACEHOLDER_RE.finditer(text):
        if m.start() > pos:
            segments.append(Segment(kind='prose', text=text[pos:m.start()]))
        segments.append(Segment(kind='code', block=int(m['index'])))
        pos = m.end()
    if pos < len(text):
        segments.append(Segment(kind='prose', text=text[pos:]))
    return segments


def _opens_indented(line: str, previous: Optional[str], context: Optional[str]) -> bool:
    """True if line starts an indented code block rather than continuing a paragraph or list."""
    if not (INDENTED_RE.match(line) and line.strip()):
        return False
    if previous is not None and previous.strip():
        return False
    return context is None or not (LIST_ITEM_RE.match(context) or context[:1] in ' \t')


def extract_code(body: str, path: Optional[Path] = None) -> Extraction:
    """Lift fenced, highlight-tag and indented regions plus inline spans out of body.

    Raises UnbalancedCodeFence on a fence or highlight tag that is never closed.
    """
    lines = body.splitlines(keepends=True)
    blocks: list[CodeBlock] = []
    out: list[str] = []
    prose: list[str] = []
    previous: Optional[str] = None
    context: Optional[str] = None

    def flush_prose() -> None:
        if prose:
            out.append(_extract_inline(''.join(prose), blocks))
            prose.clear()

    def lift(block: CodeBlock, indent: str = '') -> None:
        flush_prose()
        blocks.append(block)
        out.append(f"\n{indent}{placeholder(block)}\n\n")

    i = 0
    while i < len(lines):
        line = _strip_eol(lines[i])

        if _opens_indented(line, previous, context):
            end = _indented_block(lines, i)
            lift(CodeBlock(index=len(blocks), text=''.join(_dedent(l) for l in lines[i:end])))
            previous = context = None
            i = end
            continue

        if LIQUID_CLOSE_RE.match(line):
            raise UnbalancedCodeFence(f"line {i + 1}: endhighlight without highlight", path)

        m = LIQUID_OPEN_RE.match(line)
        fence = None
        if not m:
            m = FENCE_OPEN_RE.match(line)
            if m and m['fence'][0] == '`' and '`' in m['info']:
                m = None
            if m:
                fence = m['fence']
        if not m:
            prose.append(lines[i])
            previous = line
            if line.strip():
                context = line
            i += 1
            continue

        close = _find_close(lines, i + 1, fence)
        if close < 0:
            marker = fence or '{% highlight %}'
            raise UnbalancedCodeFence(f"line {i + 1}: {marker} is never closed", path)

        language, flag = _parse_info(m['info'])
        lift(CodeBlock(
            index=len(blocks),
            text=''.join(lines[i + 1:close]),
            language=language,
            flag=flag,
            open_marker=line.strip(),
            close_marker=_strip_eol(lines[close]).strip(),
        ), m['indent'])
        previous = context = None
        i = close + 1

    flush_prose()
    text = ''.join(out)
    return Extraction(text=text, blocks=blocks, segments=_segments(text))
