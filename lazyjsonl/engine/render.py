"""Row-descriptor rendering for the virtualized raw view.

The engine never touches a display. It emits positioned ``Row`` values for the
current window plus one ``ExtentMarker`` sized to the whole virtual document;
a frontend draws them however it likes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .cache import LineCache
from .viewport import EMPTY_WINDOW, Window

PENDING_TEXT = ""


@dataclass(frozen=True)
class Row:
    """One materialized line of the raw view."""

    index: int
    text: str
    label: str
    offset: float
    is_active: bool = False
    pending: bool = False


@dataclass(frozen=True)
class ExtentMarker:
    """Invisible element giving the scroll surface its full virtual length."""

    height: float = 0.0


@dataclass(frozen=True)
class RowSet:
    window: Window
    rows: tuple[Row, ...]
    extent: ExtentMarker

    def row_for(self, index: int) -> Row | None:
        """Look up the current row for ``index``, if it is materialized."""
        if not self.window.start <= index < self.window.end:
            return None
        return self.rows[index - self.window.start]

    def active_row(self) -> Row | None:
        for row in self.rows:
            if row.is_active:
                return row
        return None


EMPTY_ROW_SET = RowSet(EMPTY_WINDOW, (), ExtentMarker())


class RenderEngine:
    """Regenerate rows from scratch on every pass; no diffing."""

    def __init__(self, on_row_click: Callable[[int], None] | None = None) -> None:
        self.on_row_click = on_row_click
        self.extent = ExtentMarker()
        self.passes = 0

    def update_extent(self, total_lines: int, line_height: float) -> ExtentMarker:
        self.extent = ExtentMarker(height=max(0, total_lines) * line_height)
        return self.extent

    def render(
        self,
        window: Window,
        cache: LineCache,
        active_line: int | None,
        line_height: float,
    ) -> RowSet:
        self.passes += 1
        rows: list[Row] = []
        for index in window:
            text = cache.get(index)
            rows.append(
                Row(
                    index=index,
                    text=PENDING_TEXT if text is None else text,
                    label=str(index + 1),
                    offset=index * line_height,
                    is_active=index == active_line,
                    pending=text is None,
                )
            )
        return RowSet(window=window, rows=tuple(rows), extent=self.extent)

    def click(self, row: Row) -> None:
        """Forward a row interaction to the selection handler."""
        if self.on_row_click is not None:
            self.on_row_click(row.index)


__all__ = ["EMPTY_ROW_SET", "ExtentMarker", "PENDING_TEXT", "RenderEngine", "Row", "RowSet"]
