"""Session-owned cache of fetched line text."""

from __future__ import annotations

from collections.abc import Iterable


class LineCache:
    """Map absolute line index to line text for one opened file.

    Indices from different files are not comparable, so a cache is dropped
    wholesale on file switch instead of being merged.
    """

    def __init__(self) -> None:
        self._lines: dict[int, str] = {}

    def __contains__(self, index: object) -> bool:
        return index in self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def get(self, index: int, default: str | None = None) -> str | None:
        return self._lines.get(index, default)

    def store_run(self, start: int, lines: Iterable[str]) -> int:
        """Store ``lines`` at consecutive indices from ``start``; return count."""
        stored = 0
        for offset, text in enumerate(lines):
            self._lines[start + offset] = text
            stored += 1
        return stored

    def missing(self, start: int, end: int) -> list[int]:
        """Return absent indices of ``[start, end)`` in ascending order."""
        return [index for index in range(start, end) if index not in self._lines]

    def clear(self) -> None:
        self._lines.clear()


__all__ = ["LineCache"]
