from __future__ import annotations

from urllib.parse import urlparse

from markupsafe import escape

from app.blogsync.modules.richtext.nodes import BLOCKS, INLINES, MARKS, TEXT, Node

BLOCK_TAGS = {
    BLOCKS.PARAGRAPH: "p",
    BLOCKS.HEADING_1: "h1",
    BLOCKS.HEADING_2: "h2",
    BLOCKS.HEADING_3: "h3",
    BLOCKS.HEADING_4: "h4",
    BLOCKS.HEADING_5: "h5",
    BLOCKS.HEADING_6: "h6",
    BLOCKS.UL_LIST: "ul",
    BLOCKS.OL_LIST: "ol",
    BLOCKS.LIST_ITEM: "li",
    BLOCKS.QUOTE: "blockquote",
    BLOCKS.TABLE: "table",
    BLOCKS.TABLE_ROW: "tr",
    BLOCKS.TABLE_CELL: "td",
    BLOCKS.TABLE_HEADER_CELL: "th",
}

MARK_TAGS = {
    MARKS.BOLD: "strong",
    MARKS.ITALIC: "em",
    MARKS.UNDERLINE: "u",
    MARKS.CODE: "code",
}

SAFE_SCHEMES = frozenset({"http", "https", "mailto"})


def safe_href(uri: object) -> str:
    """Allow http(s)/mailto and scheme-less (relative) links; anything else becomes '#'."""
    if not isinstance(uri, str) or not uri.strip():
        return "#"
    try:
        scheme = urlparse(uri.strip()).scheme.lower()
    except ValueError:
        # e.g. an unterminated IPv6 host "http://[abc"
        return "#"
    if scheme and scheme not in SAFE_SCHEMES:
        return "#"
    return uri.strip()


def _render_text(node: Node) -> str:
    out = str(escape(node.get("value") or ""))
    for mark in node.get("marks") or []:
        tag = MARK_TAGS.get(mark.get("type"))
        if tag:
            out = f"<{tag}>{out}</{tag}>"
    return out


def _render_children(node: Node) -> str:
    return "".join(render_node(child) for child in node.get("content") or [])


def render_node(node: Node) -> str:
    node_type = node.get("nodeType")
    if node_type == TEXT:
        return _render_text(node)
    if node_type == BLOCKS.HR:
        return "<hr/>"
    if node_type == INLINES.HYPERLINK:
        href = escape(safe_href((node.get("data") or {}).get("uri")))
        return f'<a href="{href}" target="_blank" rel="noopener noreferrer">{_render_children(node)}</a>'
    if node_type == BLOCKS.LIST_ITEM:
        # List items hold paragraphs; render their inline content directly.
        inner = "".join(
            _render_children(child) if child.get("nodeType") == BLOCKS.PARAGRAPH else render_node(child)
            for child in node.get("content") or []
        )
        return f"<li>{inner}</li>"

    tag = BLOCK_TAGS.get(node_type or "")
    if tag is None:
        return _render_children(node)
    return f"<{tag}>{_render_children(node)}</{tag}>"


def render_html(document: Node) -> str:
    """Render a rich text document (or any subtree) to an HTML string."""
    return render_node(document)
