"""Exception taxonomy shared by the engine, store and runtime layers.

Every failure is caught at an operation boundary and rendered into status
text; nothing here is expected to escape the interactive loop.
"""

from __future__ import annotations


class LazyJsonlError(Exception):
    """Base class for all lazyjsonl failures."""


class LineStoreError(LazyJsonlError):
    """Backend line-store failure (IO, decoding, out-of-range access)."""


class FetchError(LazyJsonlError):
    """A coalesced range failed to load.

    Ranges filled earlier in the same ``ensure_range`` call stay cached.
    """

    def __init__(self, message: str, missing: tuple[int, ...] = ()) -> None:
        super().__init__(message)
        self.missing = missing


class OpenError(LazyJsonlError):
    """Opening or indexing a file failed; the session is reset to empty."""


class StatusError(LazyJsonlError):
    """Polling the backend indexing status failed."""


class ParseError(LazyJsonlError):
    """Selected line is not valid JSON.

    Never surfaced as a failure state: the structured view degrades to the
    error description followed by the raw line.
    """

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


__all__ = [
    "LazyJsonlError",
    "LineStoreError",
    "FetchError",
    "OpenError",
    "StatusError",
    "ParseError",
]
