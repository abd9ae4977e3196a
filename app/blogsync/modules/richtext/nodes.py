"""
Rich text document vocabulary (Contentful shape).

Nodes are plain dicts so documents can be sent to the CMS as JSON without
any conversion step.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

Node = dict[str, Any]


class BLOCKS:
    DOCUMENT = "document"
    PARAGRAPH = "paragraph"
    HEADING_1 = "heading-1"
    HEADING_2 = "heading-2"
    HEADING_3 = "heading-3"
    HEADING_4 = "heading-4"
    HEADING_5 = "heading-5"
    HEADING_6 = "heading-6"
    UL_LIST = "unordered-list"
    OL_LIST = "ordered-list"
    LIST_ITEM = "list-item"
    HR = "hr"
    QUOTE = "blockquote"
    TABLE = "table"
    TABLE_ROW = "table-row"
    TABLE_CELL = "table-cell"
    TABLE_HEADER_CELL = "table-header-cell"


class MARKS:
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    CODE = "code"


class INLINES:
    HYPERLINK = "hyperlink"


TEXT = "text"

HEADINGS = (
    BLOCKS.HEADING_1,
    BLOCKS.HEADING_2,
    BLOCKS.HEADING_3,
    BLOCKS.HEADING_4,
    BLOCKS.HEADING_5,
    BLOCKS.HEADING_6,
)


def text_node(value: str, marks: Iterable[str] = ()) -> Node:
    return {
        "nodeType": TEXT,
        "value": value,
        "marks": [{"type": m} for m in marks],
        "data": {},
    }


def block_node(node_type: str, content: list[Node] | None = None) -> Node:
    return {"nodeType": node_type, "data": {}, "content": list(content or [])}


def hyperlink_node(uri: str, text: str) -> Node:
    return {"nodeType": INLINES.HYPERLINK, "data": {"uri": uri}, "content": [text_node(text)]}


def heading_node(level: int, content: list[Node]) -> Node:
    if level < 1 or level > 6:
        raise ValueError(f"Heading level must be 1-6, got {level}")
    return block_node(HEADINGS[level - 1], content)


def paragraph_node(content: list[Node]) -> Node:
    return block_node(BLOCKS.PARAGRAPH, content)


def document_node(content: list[Node]) -> Node:
    return block_node(BLOCKS.DOCUMENT, content)


def plain_text(node: Node) -> str:
    """Concatenate every text value under `node` (depth-first)."""
    if node.get("nodeType") == TEXT:
        return str(node.get("value") or "")
    return "".join(plain_text(child) for child in node.get("content") or [])
