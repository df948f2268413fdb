"""Markdown table rendering with independent formatting toggles."""

import re
from collections.abc import Callable

from bs4 import Tag

from mdclip.models import TableFormatting

_NEWLINE_RE = re.compile(r"[ \t]*\n")
_PIPE_RE = re.compile(r"(?<!\\)\|")


def _own_rows(table: Tag) -> list[Tag]:
    """Rows of ``table`` in document order, thead and tbody alike, excluding nested tables."""
    return [row for row in table.find_all("tr") if row.find_parent("table") is table]


class TableFormatter:
    """Turns a ``<table>`` into a pipe table.

    The first row is always followed by a separator row, whether or not its
    cells are ``<th>``. Rows keep their own cell count; short rows are not
    padded with empty cells.
    """

    def __init__(self, formatting: TableFormatting) -> None:
        """Initialize the formatter.

        Args:
            formatting: Table toggles; strip_links and strip_formatting are
                honoured by the cell renderer, the rest here.

        """
        self._formatting = formatting

    def format(self, table: Tag, render_cell: Callable[[Tag], str]) -> str:
        """Render ``table`` as Markdown.

        Args:
            table: The ``<table>`` element.
            render_cell: Renders the children of a ``<th>``/``<td>`` to Markdown.

        Returns:
            The table without surrounding blank lines, or an empty string for
            a table with no cells.

        """
        rows = []
        for row in _own_rows(table):
            cells = row.find_all(["th", "td"], recursive=False)
            if cells:
                rows.append([self._cell_text(render_cell(cell)) for cell in cells])
        if not rows:
            return ""

        separator = [self._separator(3) for _ in rows[0]]
        lines = [rows[0], separator, *rows[1:]]

        if self._formatting.pretty_print:
            widths = self._column_widths(lines)
            lines = [
                self._padded(row, widths, is_separator=row is separator) for row in lines
            ]

        return "\n".join("| " + " | ".join(row) + " |" for row in lines)

    def _cell_text(self, markdown: str) -> str:
        text = _NEWLINE_RE.sub("<br>", markdown.strip())
        return _PIPE_RE.sub(r"\\|", text)

    def _separator(self, width: int) -> str:
        if self._formatting.center_text:
            return ":" + "-" * max(width - 2, 3) + ":"
        return "-" * width

    def _column_widths(self, rows: list[list[str]]) -> list[int]:
        widths: list[int] = []
        for row in rows:
            for index, cell in enumerate(row):
                if index == len(widths):
                    widths.append(0)
                widths[index] = max(widths[index], len(cell))
        return widths

    def _padded(self, row: list[str], widths: list[int], *, is_separator: bool) -> list[str]:
        if is_separator:
            return [self._separator(width) for width in widths[: len(row)]]

        padded = []
        for cell, width in zip(row, widths):
            gap = width - len(cell)
            if self._formatting.center_text:
                left = gap // 2
                padded.append(" " * left + cell + " " * (gap - left))
            else:
                padded.append(cell + " " * gap)
        return padded
