"""Active-line tracking and the structured (pretty JSON) view."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from ..errors import LazyJsonlError, ParseError
from ..store.types import LineStore

PRETTY_INDENT = 2

logger = logging.getLogger(__name__)


def parse_structured(raw: str) -> object:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ParseError(str(exc), raw) from exc


def format_structured(raw: str) -> str:
    """Re-serialize a JSON line with fixed indentation.

    Raises ``ParseError`` when ``raw`` is not valid JSON.
    """
    return json.dumps(parse_structured(raw), indent=PRETTY_INDENT, ensure_ascii=False)


def structured_view_text(raw: str) -> str:
    """Return pretty JSON, or the parse error followed by the verbatim line."""
    try:
        return format_structured(raw)
    except ParseError as exc:
        return f"Invalid JSON on this line: {exc}\n\nRaw content:\n{exc.raw}"


class SelectionController:
    """Drive the structured view from the active line with latest-wins ordering."""

    def __init__(
        self,
        store: LineStore,
        total_lines: Callable[[], int],
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self.store = store
        self._total_lines = total_lines
        self._on_status = on_status
        self.active_index: int | None = None
        self.structured_text = ""
        self.fetches_issued = 0
        self._serial = 0
        self._closed = False

    def _status(self, text: str) -> None:
        if self._on_status is not None:
            self._on_status(text)

    def close(self) -> None:
        """Drop the selection; any response still in flight is ignored."""
        self._closed = True
        self._serial += 1
        self.active_index = None
        self.structured_text = ""

    def activate(self, index: int) -> int | None:
        """Record ``index`` as active and return the request serial.

        Any earlier request becomes stale. Out-of-range indices clear the view
        and return ``None``.
        """
        if self._closed:
            return None
        self._serial += 1
        if index < 0 or index >= self._total_lines():
            self.active_index = None
            self.structured_text = ""
            return None
        self.active_index = index
        return self._serial

    async def select(self, index: int) -> bool:
        """Make ``index`` active and load its structured view.

        Returns ``True`` when this call's result was applied, ``False`` when it
        was out of range or superseded by a newer selection.
        """
        serial = self.activate(index)
        if serial is None:
            return False
        return await self.load(serial, index)

    async def load(self, serial: int, index: int) -> bool:
        self._status(f"Fetching line {index + 1} for pretty view...")
        try:
            self.fetches_issued += 1
            raw = await self.store.get_line(index)
        except (LazyJsonlError, OSError) as exc:
            if serial != self._serial:
                return False
            logger.warning("failed to fetch line %d: %s", index, exc)
            self.structured_text = f"Error fetching line content: {exc}"
            return True
        if serial != self._serial:
            return False
        self._status("Parsing JSON...")
        self.structured_text = structured_view_text(raw)
        return True


__all__ = [
    "PRETTY_INDENT",
    "SelectionController",
    "format_structured",
    "parse_structured",
    "structured_view_text",
]
