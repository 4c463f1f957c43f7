"""Inline formatting: tokenize a line into a flat token stream, then build text/link nodes.

Constructs are recognized left to right. At each position the patterns are
tried in precedence order (bold, italic, code, link) and the first match
wins. A matched span is taken literally: emphasis does not nest, so in
``**bold *and* more**`` the inner asterisks stay in the bold text.

The underscore forms ``__x__`` and ``_x_`` differ from the asterisk forms:
they only apply when no letter or digit touches the outer markers, so
``snake_case_name`` stays literal. ``**x**`` and ``*x*`` match anywhere.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ghostpub.core.lexical.nodes import (
    FORMAT_BOLD, FORMAT_CODE, FORMAT_ITALIC, InlineNode, LinkNode, TextNode,
)


class InlineKind(str, Enum):
    text = "text"
    bold = "bold"
    italic = "italic"
    code = "code"
    link = "link"


@dataclass(frozen=True)
class InlineToken:
    kind: InlineKind
    text: str
    url: Optional[str] = None


# Underscore forms must not touch word characters (snake_case stays plain text)
_PATTERNS: tuple[tuple[InlineKind, re.Pattern], ...] = (
    (InlineKind.bold,   re.compile(r"\*\*(.+?)\*\*")),
    (InlineKind.bold,   re.compile(r"(?<![A-Za-z0-9])__(.+?)__(?![A-Za-z0-9])")),
    (InlineKind.italic, re.compile(r"\*(.+?)\*")),
    (InlineKind.italic, re.compile(r"(?<![A-Za-z0-9])_(.+?)_(?![A-Za-z0-9])")),
    (InlineKind.code,   re.compile(r"`(.+?)`")),
    (InlineKind.link,   re.compile(r"\[(.+?)\]\((.+?)\)")),
)
_OPENERS = frozenset("*_`[")

_FORMATS = {
    InlineKind.bold: FORMAT_BOLD,
    InlineKind.italic: FORMAT_ITALIC,
    InlineKind.code: FORMAT_CODE,
}


def _match_at(text: str, pos: int) -> Optional[tuple[InlineKind, re.Match]]:
    for kind, pattern in _PATTERNS:
        m = pattern.match(text, pos)
        if m:
            return kind, m
    return None


def tokenize(text: str) -> list[InlineToken]:
    """Split text into plain and formatted tokens; adjacent plain characters are merged."""
    tokens: list[InlineToken] = []
    plain_start = 0
    pos = 0

    while pos < len(text):
        found = _match_at(text, pos) if text[pos] in _OPENERS else None
        if found is None:
            pos += 1
            continue
        kind, m = found
        if plain_start < pos:
            tokens.append(InlineToken(InlineKind.text, text[plain_start:pos]))
        url = m.group(2) if kind is InlineKind.link else None
        tokens.append(InlineToken(kind, m.group(1), url))
        pos = plain_start = m.end()

    if plain_start < len(text):
        tokens.append(InlineToken(InlineKind.text, text[plain_start:]))
    return tokens


def parse_inline(text: str) -> list[InlineNode]:
    """Build inline nodes for one block's text. Never returns an empty list."""
    nodes: list[InlineNode] = []
    for tok in tokenize(text):
        if tok.kind is InlineKind.link:
            nodes.append(LinkNode(url=tok.url or "", children=[TextNode(tok.text)]))
        else:
            nodes.append(TextNode(tok.text, _FORMATS.get(tok.kind, 0)))
    return nodes or [TextNode(text)]
