from __future__ import annotations

import re

from app.blogsync.modules.richtext.nodes import MARKS, Node, hyperlink_node, text_node

# Regex patterns for inline spans. Order matters: on equal start index the
# earlier pattern wins.
BOLD_RX = re.compile(r"\*\*((?:[^*]|\*(?!\*))+)\*\*")
ITALIC_RX = re.compile(r"(?<!\*)\*(?!\*)([^*]+)\*(?!\*)")
LINK_RX = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
CODE_RX = re.compile(r"`([^`]+)`")

SPAN_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("bold", BOLD_RX),
    ("italic", ITALIC_RX),
    ("link", LINK_RX),
    ("code", CODE_RX),
)

_MARK_FOR_KIND = {"bold": MARKS.BOLD, "italic": MARKS.ITALIC, "code": MARKS.CODE}


def _earliest_span(text: str) -> tuple[str, re.Match[str]] | None:
    best: tuple[str, re.Match[str]] | None = None
    for kind, rx in SPAN_PATTERNS:
        m = rx.search(text)
        if m and (best is None or m.start() < best[1].start()):
            best = (kind, m)
    return best


def parse_inline(text: str) -> list[Node]:
    """
    Tokenize one run of text into text/hyperlink nodes.

    Scans left to right: at each step the earliest span among bold, italic,
    link and code syntax is emitted, preceded by any plain text, and scanning
    resumes after it. Spans do not nest; their inner text is taken literally.
    """
    nodes: list[Node] = []
    remaining = text or ""

    while remaining:
        found = _earliest_span(remaining)
        if found is None:
            nodes.append(text_node(remaining))
            break

        kind, m = found
        if m.start() > 0:
            nodes.append(text_node(remaining[: m.start()]))
        if kind == "link":
            nodes.append(hyperlink_node(m.group(2), m.group(1)))
        else:
            nodes.append(text_node(m.group(1), [_MARK_FOR_KIND[kind]]))
        # Slice rather than search from an offset so lookbehind only sees
        # the unconsumed text.
        remaining = remaining[m.end():]

    return nodes or [text_node(text or "")]
