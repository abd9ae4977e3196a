"""
Markdown -> rich text document converter.

Single pass over lines. Each line is classified (code fence, horizontal rule,
table row/separator, list item, heading, paragraph) and contiguous runs of
list items, table rows and fenced code are accumulated before being emitted
as block nodes.
"""
from __future__ import annotations

import re

from app.blogsync.modules.richtext.inline import parse_inline
from app.blogsync.modules.richtext.nodes import (
    BLOCKS,
    MARKS,
    Node,
    block_node,
    document_node,
    heading_node,
    paragraph_node,
    text_node,
)

FENCE = "```"
HR_LINES = frozenset({"***", "---", "___"})
TABLE_SEPARATOR_RX = re.compile(r"^\|?[\s\-:|]+\|?$")
UL_ITEM_RX = re.compile(r"^[-*]\s+")
OL_ITEM_RX = re.compile(r"^\d+\.\s+")
HEADING_RX = re.compile(r"^#+")


def split_table_row(line: str) -> list[str]:
    """Split a pipe row into stripped cells, dropping the empty edge cells."""
    cells = [c.strip() for c in line.split("|")]
    if cells and cells[0] == "":
        cells.pop(0)
    if cells and cells[-1] == "":
        cells.pop()
    return cells


class _DocumentBuilder:
    def __init__(self, *, native_tables: bool) -> None:
        self.native_tables = native_tables
        self.content: list[Node] = []

        self.in_code = False
        self.code_lines: list[str] = []

        self.table_rows: list[list[str]] = []
        self.table_has_header = False

        self.list_kind: str | None = None
        self.list_items: list[str] = []

    # -- runs -------------------------------------------------------------

    def flush_code(self) -> None:
        self.content.append(paragraph_node([text_node("\n".join(self.code_lines), [MARKS.CODE])]))
        self.code_lines = []
        self.in_code = False

    def flush_list(self) -> None:
        if not self.list_items or self.list_kind is None:
            self.list_kind = None
            return
        items = [
            block_node(BLOCKS.LIST_ITEM, [paragraph_node(parse_inline(item))])
            for item in self.list_items
        ]
        self.content.append(block_node(self.list_kind, items))
        self.list_items = []
        self.list_kind = None

    def flush_table(self) -> None:
        if not self.table_rows:
            self.table_has_header = False
            return
        if self.native_tables:
            self.content.append(self._native_table())
        else:
            for index, row in enumerate(self.table_rows):
                joined = " | ".join(row)
                if index == 0:
                    self.content.append(paragraph_node([text_node(joined, [MARKS.BOLD])]))
                else:
                    self.content.append(paragraph_node(parse_inline(joined)))
        self.table_rows = []
        self.table_has_header = False

    def _native_table(self) -> Node:
        rows: list[Node] = []
        for index, row in enumerate(self.table_rows):
            cell_type = BLOCKS.TABLE_HEADER_CELL if index == 0 and self.table_has_header else BLOCKS.TABLE_CELL
            cells = [block_node(cell_type, [paragraph_node(parse_inline(cell))]) for cell in row]
            rows.append(block_node(BLOCKS.TABLE_ROW, cells))
        return block_node(BLOCKS.TABLE, rows)

    def finish(self) -> list[Node]:
        if self.in_code:
            self.flush_code()
        self.flush_list()
        self.flush_table()
        return self.content

    # -- lines ------------------------------------------------------------

    def feed(self, line: str) -> None:
        if line.startswith(FENCE):
            if self.in_code:
                self.flush_code()
            else:
                self.flush_list()
                self.flush_table()
                self.in_code = True
            return

        if self.in_code:
            self.code_lines.append(line)
            return

        stripped = line.strip()
        if stripped in HR_LINES:
            self.flush_list()
            self.flush_table()
            self.content.append(block_node(BLOCKS.HR))
            return

        if "|" in line:
            if TABLE_SEPARATOR_RX.match(stripped):
                if self.table_rows:
                    self.table_has_header = True
                return
            cells = split_table_row(line)
            if cells:
                self.flush_list()
                self.table_rows.append(cells)
                return
        if self.table_rows:
            self.flush_table()

        for kind, rx in ((BLOCKS.UL_LIST, UL_ITEM_RX), (BLOCKS.OL_LIST, OL_ITEM_RX)):
            m = rx.match(line)
            if m:
                if self.list_kind != kind:
                    self.flush_list()
                    self.list_kind = kind
                self.list_items.append(line[m.end():])
                return
        self.flush_list()

        m = HEADING_RX.match(line)
        if m:
            level = min(len(m.group(0)), 6)
            self.content.append(heading_node(level, parse_inline(line[level:].strip())))
        elif stripped:
            self.content.append(paragraph_node(parse_inline(line)))


def markdown_to_rich_text(markdown: str, *, native_tables: bool = False) -> Node:
    """
    Convert Markdown to a rich text document.

    Tables are flattened to one paragraph per row (first row bold) unless
    `native_tables` is set, in which case table/table-row/cell nodes are
    emitted. A document that would otherwise be empty holds the raw input
    as a single paragraph.
    """
    builder = _DocumentBuilder(native_tables=native_tables)
    for raw in (markdown or "").split("\n"):
        builder.feed(raw.rstrip("\r"))
    content = builder.finish()

    if not content:
        content = [paragraph_node([text_node(markdown or "")])]
    return document_node(content)
