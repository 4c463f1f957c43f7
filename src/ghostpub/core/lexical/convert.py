"""Markdown body -> LexicalDocument, plus title resolution"""

from ghostpub.core.lexical.blocks import parse_blocks
from ghostpub.core.lexical.nodes import LexicalDocument


UNTITLED = "Untitled"


def _lines(markdown: str) -> list[str]:
    """Split on '\\n' only; other line-break characters stay inside their line."""
    lines = markdown.replace("\r\n", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def markdown_to_lexical(markdown: str) -> LexicalDocument:
    """Convert a note body (header already stripped) into a Lexical document."""
    blocks, title = parse_blocks(_lines(markdown))
    return LexicalDocument(children=blocks, title=title)


def document_title(doc: LexicalDocument, markdown: str) -> str:
    """First rank-1 heading, else the first non-empty line (heading marks removed), else 'Untitled'."""
    if doc.title:
        return doc.title
    for line in _lines(markdown):
        if line.strip():
            return line.strip().lstrip('#').strip() or UNTITLED
    return UNTITLED
