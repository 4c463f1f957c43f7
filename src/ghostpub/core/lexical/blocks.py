"""Line-oriented block parser: markdown body -> ordered Lexical block nodes.

Single pass, no backtracking. While scanning, each line is checked in a fixed
order (blank, heading, bullet list, ordered list, code fence, blockquote,
standalone image, paragraph); list, code and quote matches switch into a
consuming state that takes every contiguous line of that kind before
scanning resumes.
"""

import re
from typing import Optional

from ghostpub.core.lexical.inline import parse_inline
from ghostpub.core.lexical.nodes import (
    BlockNode, CodeNode, HeadingNode, ImageNode, ListItemNode, ListNode,
    ParagraphNode, QuoteNode,
)
from ghostpub.exceptions import ConversionError


HEADING_RE = re.compile(r'^(#{1,6})\s+(.+)$')
BULLET_RE = re.compile(r'^[*\-+]\s+')
ORDERED_RE = re.compile(r'^\d+\.\s+')
QUOTE_RE = re.compile(r'^> ?')
IMAGE_RE = re.compile(r'^!\[([^\]]*)\]\(([^)]+)\)\s*$')
FENCE = '```'


def _consume_list(lines: list[str], i: int, marker: re.Pattern, ordered: bool) -> tuple[int, ListNode]:
    items: list[ListItemNode] = []
    while i < len(lines) and marker.match(lines[i]):
        text = marker.sub('', lines[i], count=1)
        items.append(ListItemNode(value=len(items) + 1 if ordered else 1, children=parse_inline(text)))
        i += 1
    return i, ListNode(ordered=ordered, items=items)


def _consume_code(lines: list[str], i: int) -> tuple[int, CodeNode]:
    """Fence interior is copied verbatim, blank lines included, up to the closing fence or EOF."""
    language = lines[i][len(FENCE):].strip() or None
    i += 1
    code_lines: list[str] = []
    while i < len(lines) and not lines[i].startswith(FENCE):
        code_lines.append(lines[i])
        i += 1
    return i + 1, CodeNode(code='\n'.join(code_lines), language=language)


def _consume_quote(lines: list[str], i: int) -> tuple[int, QuoteNode]:
    parts: list[str] = []
    while i < len(lines) and lines[i].startswith('>'):
        parts.append(QUOTE_RE.sub('', lines[i], count=1))
        i += 1
    text = ' '.join(p for p in parts if p.strip())
    return i, QuoteNode(children=parse_inline(text))


def parse_blocks(lines: list[str]) -> tuple[list[BlockNode], Optional[str]]:
    """Return (blocks, title). The first rank-1 heading is taken as the title and not emitted."""
    blocks: list[BlockNode] = []
    title: Optional[str] = None
    title_seen = False
    i = 0

    while i < len(lines):
        start = i
        line = lines[i]

        if not line.strip():
            i += 1
        elif m := HEADING_RE.match(line):
            level, text = len(m.group(1)), m.group(2)
            if level == 1 and not title_seen:
                title_seen = True
                title = text.strip()
            else:
                blocks.append(HeadingNode(level=level, children=parse_inline(text)))
            i += 1
        elif BULLET_RE.match(line):
            i, node = _consume_list(lines, i, BULLET_RE, ordered=False)
            blocks.append(node)
        elif ORDERED_RE.match(line):
            i, node = _consume_list(lines, i, ORDERED_RE, ordered=True)
            blocks.append(node)
        elif line.startswith(FENCE):
            i, node = _consume_code(lines, i)
            blocks.append(node)
        elif line.startswith('>'):
            i, node = _consume_quote(lines, i)
            blocks.append(node)
        elif m := IMAGE_RE.match(line):
            blocks.append(ImageNode(src=m.group(2), alt=m.group(1)))
            i += 1
        else:
            blocks.append(ParagraphNode(children=parse_inline(line.strip())))
            i += 1

        if i <= start:
            raise ConversionError(f"Parser made no progress at line {start + 1}: {line!r}")

    return blocks, title
