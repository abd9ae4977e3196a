from __future__ import annotations

import html as html_lib
import re

from app.blogsync.modules.richtext.nodes import Node, document_node, paragraph_node, text_node

TAG_RX = re.compile(r"<[^>]*>")


def html_to_rich_text(html: str) -> Node:
    """Fallback for HTML-only articles: tags stripped, entities decoded, one paragraph."""
    text = html_lib.unescape(TAG_RX.sub("", html or ""))
    return document_node([paragraph_node([text_node(text)])])
