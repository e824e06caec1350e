"""Virtualized line-viewer engine.

Maps scroll positions to line windows, fills a per-session cache through
coalesced backend requests, and emits presentation-free row descriptors.
"""

from .cache import LineCache
from .fetch import FetchCoalescer, FetchRange, coalesce
from .render import ExtentMarker, RenderEngine, Row, RowSet
from .selection import SelectionController, format_structured, structured_view_text
from .session import Session, SessionController, StatusProjection
from .status_poller import IndexingStatusPoller, format_status
from .viewport import OVERSCAN, ViewportController, Window, compute_window

__all__ = [
    "ExtentMarker",
    "FetchCoalescer",
    "FetchRange",
    "IndexingStatusPoller",
    "LineCache",
    "OVERSCAN",
    "RenderEngine",
    "Row",
    "RowSet",
    "SelectionController",
    "Session",
    "SessionController",
    "StatusProjection",
    "ViewportController",
    "Window",
    "coalesce",
    "compute_window",
    "format_status",
    "format_structured",
    "structured_view_text",
]
