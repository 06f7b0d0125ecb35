"""Two-pass reference-style link resolution: collect definitions, then substitute usages"""

import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import structlog

from mdsite.core.errors import AmbiguousReference
from mdsite.core.models import Link, ReferenceDefinition


logger = structlog.get_logger(__name__)

DEFINITION_RE = re.compile(
    r'''^[ ]{0,3}\[(?!\^)(?P<label>[^\]\n]+)\]:[ \t]*
        <?(?P<target>[^\s<>]+)>?
        (?:[ \t]+(?:"(?P<dq>[^"\n]*)"|'(?P<sq>[^'\n]*)'|\((?P<pq>[^)\n]*)\)))?
        [ \t]*(?:\n|$)''',
    re.MULTILINE | re.VERBOSE,
)
USAGE_RE = re.compile(
    r'(?<!\\)\[(?P<text>(?:[^\[\]\\]|\\.|\[[^\[\]]*\])*)\]\[(?P<label>[^\[\]]*)\]'
)
SHORTCUT_RE = re.compile(r'(?<![\\\]\[])\[(?P<text>[^\[\]\n]+)\](?![\[(:\]])')


def normalize_label(label: str) -> str:
    """Lookup key for a label: NFKC, collapsed whitespace, case-folded."""
    return ' '.join(unicodedata.normalize('NFKC', label).split()).casefold()


@dataclass
class Resolution:
    """Outcome of resolving one document body."""
    text:        str
    definitions: list[ReferenceDefinition] = field(default_factory=list)
    links:       list[Link] = field(default_factory=list)
    unresolved:  list[str] = field(default_factory=list)


def collect_definitions(
    text: str,
    path: Optional[Path] = None,
    ) -> tuple[dict[str, ReferenceDefinition], str]:
    """First pass: map normalized label -> definition and strip definition lines from text."""
    definitions: dict[str, ReferenceDefinition] = {}
    for m in DEFINITION_RE.finditer(text):
        key = normalize_label(m['label'])
        if key in definitions:
            raise AmbiguousReference(
                f"reference [{m['label']}] is defined more than once "
                f"(first as [{definitions[key].label}])",
                path,
            )
        title = next((t for t in (m['dq'], m['sq'], m['pq']) if t is not None), None)
        definitions[key] = ReferenceDefinition(
            label=m['label'], key=key, target=m['target'], title=title,
        )
    return definitions, DEFINITION_RE.sub('', text)


def _inline_link(text: str, definition: ReferenceDefinition) -> str:
    """Render a resolved usage as an inline Markdown link."""
    if definition.title is None:
        return f'[{text}](<{definition.target}>)'
    title = definition.title.replace('\\', '\\\\').replace('"', '\\"')
    return f'[{text}](<{definition.target}> "{title}")'


def resolve_references(text: str, path: Optional[Path] = None) -> Resolution:
    """Resolve [text][label], [text][] and [label] usages against definitions anywhere in text.

    Unknown labels in [text][label] form stay literal and are reported in
    Resolution.unresolved; a bare [label] with no definition is plain text.
    """
    definitions, stripped = collect_definitions(text, path)
    links: list[Link] = []
    unresolved: list[str] = []

    def repl(m: re.Match) -> str:
        label = m['label'] or m['text']
        definition = definitions.get(normalize_label(label))
        if definition is None:
            unresolved.append(label)
            logger.info("reference.unresolved", path=str(path) if path else None, label=label)
            return m.group(0)
        links.append(Link(
            text=m['text'], label=label, target=definition.target, title=definition.title,
        ))
        return _inline_link(m['text'], definition)

    def shortcut(m: re.Match) -> str:
        definition = definitions.get(normalize_label(m['text']))
        if definition is None:
            return m.group(0)
        links.append(Link(
            text=m['text'], label=m['text'], target=definition.target, title=definition.title,
        ))
        return _inline_link(m['text'], definition)

    resolved = USAGE_RE.sub(repl, stripped)
    if definitions:
        resolved = SHORTCUT_RE.sub(shortcut, resolved)
    return Resolution(
        text=resolved,
        definitions=list(definitions.values()),
        links=links,
        unresolved=unresolved,
    )
