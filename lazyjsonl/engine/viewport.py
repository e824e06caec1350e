"""Scroll-offset to line-window mapping for the virtualized raw view."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

OVERSCAN = 10
FALLBACK_LINE_HEIGHT = 15.0

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Window:
    """Half-open index window ``[start, end)``."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def __iter__(self):
        return iter(range(self.start, self.end))


EMPTY_WINDOW = Window(0, 0)


def compute_window(
    scroll_offset: float,
    line_height: float,
    viewport_height: float,
    total_lines: int,
    overscan: int = OVERSCAN,
) -> Window:
    """Return the overscanned index window for a scroll position.

    Always satisfies ``0 <= start <= end <= total_lines``.
    """
    if line_height <= 0:
        raise ValueError("line_height must be measured before computing a window")
    if total_lines <= 0:
        return EMPTY_WINDOW
    first_visible = math.floor(max(0.0, scroll_offset) / line_height)
    visible_count = math.ceil(max(0.0, viewport_height) / line_height)
    start = min(total_lines, max(0, first_visible - overscan))
    end = min(total_lines, first_visible + visible_count + overscan)
    return Window(start, max(start, end))


class ViewportController:
    """Own scroll offset, line height and viewport height for one session."""

    def __init__(self, viewport_height: float = 0.0, overscan: int = OVERSCAN) -> None:
        self.scroll_offset = 0.0
        self.line_height = 0.0
        self.viewport_height = max(0.0, viewport_height)
        self.overscan = overscan

    @property
    def visible_count(self) -> int:
        if self.line_height <= 0:
            return 0
        return math.ceil(self.viewport_height / self.line_height)

    def ensure_line_height(self, probe: Callable[[], float] | None = None) -> float:
        """Measure row height once, falling back when the probe yields nothing."""
        if self.line_height > 0:
            return self.line_height
        measured = probe() if probe is not None else 0.0
        if not measured or measured <= 0:
            logger.warning("line height measurement failed, using fallback %s", FALLBACK_LINE_HEIGHT)
            measured = FALLBACK_LINE_HEIGHT
        self.line_height = float(measured)
        return self.line_height

    def extent(self, total_lines: int) -> float:
        return max(0, total_lines) * self.line_height

    def max_scroll_offset(self, total_lines: int) -> float:
        return max(0.0, self.extent(total_lines) - self.viewport_height)

    def scroll_to(self, offset: float, total_lines: int) -> bool:
        """Clamp and apply a scroll offset; return whether it changed."""
        clamped = max(0.0, min(float(offset), self.max_scroll_offset(total_lines)))
        if clamped == self.scroll_offset:
            return False
        self.scroll_offset = clamped
        return True

    def scroll_to_reveal(self, index: int, total_lines: int) -> bool:
        """Scroll minimally so line ``index`` is fully inside the viewport."""
        if self.line_height <= 0:
            return False
        top = index * self.line_height
        bottom = top + self.line_height
        if top < self.scroll_offset:
            return self.scroll_to(top, total_lines)
        if bottom > self.scroll_offset + self.viewport_height:
            return self.scroll_to(bottom - self.viewport_height, total_lines)
        return False

    def resize(self, viewport_height: float) -> bool:
        height = max(0.0, float(viewport_height))
        if height == self.viewport_height:
            return False
        self.viewport_height = height
        return True

    def first_visible(self) -> int:
        if self.line_height <= 0:
            return 0
        return math.floor(self.scroll_offset / self.line_height)

    def window(self, total_lines: int) -> Window:
        return compute_window(
            self.scroll_offset,
            self.line_height,
            self.viewport_height,
            total_lines,
            self.overscan,
        )


__all__ = [
    "EMPTY_WINDOW",
    "FALLBACK_LINE_HEIGHT",
    "OVERSCAN",
    "ViewportController",
    "Window",
    "compute_window",
]
