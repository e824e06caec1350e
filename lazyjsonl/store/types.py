"""Line-store contract consumed by the viewer engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class IndexingStatus:
    """Backend progress snapshot; ``progress`` is in ``[0, 1]``."""

    message: str
    progress: float

    def percent(self) -> int:
        return round(self.progress * 100)

    def is_error(self) -> bool:
        return "error" in self.message.lower()

    def is_terminal(self) -> bool:
        """Return whether polling should stop for this status.

        Free-text matching mirrors what the backend reports: any message
        containing ``error`` or equal to ``ready`` ends indexing.
        """
        lowered = self.message.lower()
        return self.progress >= 1.0 or "error" in lowered or lowered == "ready"


@dataclass(frozen=True)
class LineOffset:
    """Byte span of one line, terminator included."""

    offset: int
    length: int


class LineStore(Protocol):
    """Asynchronous backend that indexes one file and serves its lines."""

    async def open(self, path: str) -> int:
        """Index ``path`` and return its total line count."""
        ...

    async def status(self) -> IndexingStatus:
        ...

    async def get_lines(self, start: int, count: int) -> list[str]:
        """Return lines ``[start, start+count)``, truncated at end-of-file."""
        ...

    async def get_line(self, index: int) -> str:
        ...


__all__ = ["IndexingStatus", "LineOffset", "LineStore"]
