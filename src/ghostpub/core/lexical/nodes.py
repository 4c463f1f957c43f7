"""Typed node tree for Ghost's Lexical document format"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union


FORMAT_BOLD = 1
FORMAT_ITALIC = 2
FORMAT_CODE = 16


def _element(node_type: str, children: list, **extra: Any) -> dict[str, Any]:
    """Common keys of every Lexical element node."""
    return {
        "type": node_type,
        "version": 1,
        **extra,
        "children": [c.to_dict() for c in children],
        "direction": "ltr",
        "format": "",
        "indent": 0,
    }


@dataclass
class TextNode:
    text: str
    format: int = 0     # bitmask of FORMAT_* flags

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "extended-text",
            "text": self.text,
            "version": 1,
            "format": self.format,
            "detail": 0,
            "mode": "normal",
            "style": "",
        }


@dataclass
class LinkNode:
    url: str
    children: list[TextNode]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "link",
            "url": self.url,
            "rel": None,
            "target": None,
            "title": None,
            "version": 1,
            "children": [c.to_dict() for c in self.children],
            "direction": "ltr",
        }


InlineNode = Union[TextNode, LinkNode]


@dataclass
class HeadingNode:
    level: int
    children: list[InlineNode]

    def to_dict(self) -> dict[str, Any]:
        return _element("heading", self.children, tag=f"h{self.level}")


@dataclass
class ParagraphNode:
    children: list[InlineNode]

    def to_dict(self) -> dict[str, Any]:
        return _element("paragraph", self.children)


@dataclass
class ListItemNode:
    value: int
    children: list[InlineNode]

    def to_dict(self) -> dict[str, Any]:
        return _element("listitem", self.children, value=self.value)


@dataclass
class ListNode:
    ordered: bool
    items: list[ListItemNode]

    def to_dict(self) -> dict[str, Any]:
        if self.ordered:
            return _element("list", self.items, listType="number", tag="ol", start=1)
        return _element("list", self.items, listType="bullet", tag="ul")


@dataclass
class QuoteNode:
    children: list[InlineNode]

    def to_dict(self) -> dict[str, Any]:
        return _element("quote", self.children)


@dataclass
class CodeNode:
    code: str
    language: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        extra = {"language": self.language} if self.language else {}
        return _element("code", [TextNode(self.code)], **extra)


@dataclass
class ImageNode:
    src: str
    alt: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "image",
            "version": 1,
            "src": self.src,
            "alt": self.alt,
            "width": None,
            "height": None,
            "title": None,
            "format": "",
            "indent": 0,
            "direction": None,
        }


BlockNode = Union[HeadingNode, ParagraphNode, ListNode, QuoteNode, CodeNode, ImageNode]


@dataclass
class LexicalDocument:
    """Root of a converted note. `title` is the first rank-1 heading, which is not part of `children`."""
    children: list[BlockNode] = field(default_factory=list)
    title: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": {
                "type": "root",
                "format": "",
                "indent": 0,
                "version": 1,
                "children": [c.to_dict() for c in self.children],
                "direction": "ltr",
            }
        }

    def to_json(self) -> str:
        """Compact JSON string, the form Ghost expects in a post's `lexical` field."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))
