"""Frame composition for the split raw/structured terminal view.

``FrameLayout`` holds pane geometry shared by drawing and mouse hit-testing.
``build_frame`` turns engine row descriptors plus status projections into one
full-screen ANSI frame without mutating any state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..ansi import display_width, fit_line, sanitize_text, wrap_block
from ..engine.render import Row, RowSet
from ..engine.session import StatusProjection
from ..ui_theme import DEFAULT_THEME, UITheme

HEADER_ROWS = 1
STATUS_ROWS = 1
MIN_PANE_WIDTH = 12


def clamp_left_width(total_width: int, desired_left: int) -> int:
    max_possible = max(1, total_width - 2)
    min_left = max(MIN_PANE_WIDTH, min(20, total_width - MIN_PANE_WIDTH))
    max_left = max(min_left, total_width - MIN_PANE_WIDTH)
    max_left = min(max_left, max_possible)
    min_left = min(min_left, max_left)
    return max(min_left, min(desired_left, max_left))


@dataclass(frozen=True)
class FrameLayout:
    """Screen geometry in 0-based cells."""

    width: int
    height: int
    left_width: int
    gutter_width: int

    @classmethod
    def build(cls, width: int, height: int, left_width: int, total_lines: int) -> FrameLayout:
        width = max(1, width)
        left = clamp_left_width(width, left_width)
        gutter = max(2, len(str(max(1, total_lines))) + 1)
        return cls(width=width, height=max(1, height), left_width=left, gutter_width=gutter)

    @property
    def content_rows(self) -> int:
        return max(1, self.height - HEADER_ROWS - STATUS_ROWS)

    @property
    def right_width(self) -> int:
        return max(0, self.width - self.left_width - 1)

    @property
    def raw_text_width(self) -> int:
        # Gutter, a separating space, then text; the last column is the scrollbar.
        return max(0, self.left_width - self.gutter_width - 2)

    def content_row_for(self, screen_row: int) -> int | None:
        """Map a 1-based terminal row to a 0-based content row."""
        content_row = screen_row - 1 - HEADER_ROWS
        if 0 <= content_row < self.content_rows:
            return content_row
        return None

    def in_raw_pane(self, screen_col: int) -> bool:
        return 1 <= screen_col <= self.left_width

    def in_structured_pane(self, screen_col: int) -> bool:
        return screen_col > self.left_width + 1


def rows_by_screen_row(row_set: RowSet, scroll_offset: float, line_height: float) -> dict[int, Row]:
    """Place row descriptors by their absolute offset relative to the scroll."""
    placed: dict[int, Row] = {}
    if line_height <= 0:
        return placed
    for row in row_set.rows:
        screen_row = math.floor((row.offset - scroll_offset) / line_height)
        if screen_row >= 0:
            placed[screen_row] = row
    return placed


def scrollbar_cells(content_rows: int, extent: float, viewport: float, scroll_offset: float) -> tuple[int, int]:
    """Return ``(thumb_top, thumb_size)`` for a track of ``content_rows`` cells."""
    if content_rows <= 0:
        return 0, 0
    if extent <= viewport or extent <= 0:
        return 0, 0
    thumb_size = max(1, min(content_rows, round(content_rows * viewport / extent)))
    max_scroll = extent - viewport
    fraction = max(0.0, min(1.0, scroll_offset / max_scroll))
    thumb_top = round((content_rows - thumb_size) * fraction)
    return thumb_top, thumb_size


def build_status_line(left_text: str, width: int, right_text: str) -> str:
    usable = max(1, width)
    if usable <= display_width(right_text):
        return right_text[-usable:]
    left_limit = max(0, usable - display_width(right_text) - 1)
    left = fit_line(left_text, left_limit).rstrip()
    gap = " " * max(0, usable - display_width(left) - display_width(right_text))
    return f"{left}{gap}{right_text}"


@dataclass
class FrameContext:
    layout: FrameLayout
    row_set: RowSet
    scroll_offset: float
    line_height: float
    extent: float
    structured_text: str
    structured_start: int
    status: StatusProjection
    theme: UITheme = DEFAULT_THEME
    prompt: str | None = None


def structured_lines(text: str, width: int) -> list[str]:
    if not text:
        return []
    return wrap_block(text, max(1, width))


def _raw_cell(context: FrameContext, row: Row | None) -> str:
    layout = context.layout
    theme = context.theme
    if row is None:
        return " " * (layout.left_width - 1)
    label = row.label.rjust(layout.gutter_width)
    gutter_style = theme.gutter_active if row.is_active else theme.gutter
    gutter = f"{gutter_style}{label}{theme.reset} " if gutter_style else f"{label} "
    text = fit_line(sanitize_text(row.text), layout.raw_text_width)
    if row.is_active and theme.reverse:
        text = f"{theme.reverse}{text}{theme.reset}"
    elif row.pending and theme.pending:
        text = f"{theme.pending}{text}{theme.reset}"
    return gutter + text


def build_frame(context: FrameContext) -> str:
    layout = context.layout
    theme = context.theme
    out: list[str] = ["\033[H\033[J"]

    raw_title = fit_line(" RAW", layout.left_width)
    pretty_title = fit_line(" STRUCTURED", layout.right_width)
    out.append(f"{theme.pane_title}{raw_title}{theme.reset}{theme.divider}│{theme.reset}")
    out.append(f"{theme.pane_title}{pretty_title}{theme.reset}\r\n")

    placed = rows_by_screen_row(context.row_set, context.scroll_offset, context.line_height)
    viewport = layout.content_rows * context.line_height
    thumb_top, thumb_size = scrollbar_cells(layout.content_rows, context.extent, viewport, context.scroll_offset)
    pretty = structured_lines(context.structured_text, layout.right_width)
    pretty_start = max(0, min(context.structured_start, max(0, len(pretty) - 1)))

    for screen_row in range(layout.content_rows):
        out.append(_raw_cell(context, placed.get(screen_row)))
        if thumb_size and thumb_top <= screen_row < thumb_top + thumb_size:
            out.append(f"{theme.scrollbar_thumb}█{theme.reset}")
        else:
            out.append(f"{theme.scrollbar_track}│{theme.reset}" if thumb_size else " ")
        out.append(f"{theme.divider}│{theme.reset}")
        pretty_idx = pretty_start + screen_row
        pretty_text = pretty[pretty_idx] if pretty_idx < len(pretty) else ""
        out.append(fit_line(pretty_text, layout.right_width))
        out.append("\r\n")

    status = context.status
    if context.prompt is not None:
        prompt_text = fit_line(f" Open: {sanitize_text(context.prompt)}█", layout.width)
        out.append(f"{theme.prompt}{prompt_text}{theme.reset}")
    else:
        left = " │ ".join(part for part in (status.file_path, status.total_lines, status.indexing) if part)
        line = build_status_line(f" {sanitize_text(left)}", layout.width, f"{status.cursor} │ o open  q quit ")
        style = theme.status_error if status.indexing.startswith("Error") else theme.status_bar
        out.append(f"{style}{line}{theme.reset}")
    return "".join(out)


__all__ = [
    "FrameContext",
    "FrameLayout",
    "build_frame",
    "build_status_line",
    "clamp_left_width",
    "rows_by_screen_row",
    "scrollbar_cells",
    "structured_lines",
]
