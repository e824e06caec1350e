"""File-backed line store.

Indexes a file in a worker thread while exposing progress for polling, then
serves lines by seeking to recorded byte offsets. Only one file is indexed at
a time; a newer ``open`` supersedes any earlier one still in progress.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path

from ..errors import LineStoreError
from . import index_cache
from .offsets import build_line_offset_index, decode_line
from .types import IndexingStatus, LineOffset

logger = logging.getLogger(__name__)


class FileLineStore:
    """Serve line ranges of one indexed file."""

    def __init__(self, use_index_cache: bool = True) -> None:
        self.use_index_cache = use_index_cache
        self._lock = threading.Lock()
        self._status = IndexingStatus("Idle", 0.0)
        self._generation = 0
        self._path: Path | None = None
        self._offsets: list[LineOffset] | None = None

    def _set_status(self, message: str, progress: float, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._status = IndexingStatus(message, progress)

    def _build_index(self, path: Path, generation: int) -> list[LineOffset]:
        self._set_status("Indexing line offsets...", 0.1, generation)
        if self.use_index_cache:
            cached = index_cache.load_line_offset_index(path)
            if cached is not None:
                self._set_status("Loaded line offsets from cache.", 0.25, generation)
                return cached

        def report(bytes_read: int, total_bytes: int) -> None:
            if total_bytes > 0:
                self._set_status("Indexing line offsets...", 0.1 + 0.15 * (bytes_read / total_bytes), generation)

        offsets = build_line_offset_index(path, on_progress=report)
        if self.use_index_cache:
            index_cache.save_line_offset_index(path, offsets)
        self._set_status("Built line offsets.", 0.25, generation)
        return offsets

    async def open(self, path: str) -> int:
        target = Path(path)
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._status = IndexingStatus("Opening file...", 0.0)
            self._path = None
            self._offsets = None

        if not target.is_file():
            reason = f"not a file: {target}"
            self._set_status(f"Error: {reason}", 0.0, generation)
            raise LineStoreError(reason)
        try:
            offsets = await asyncio.to_thread(self._build_index, target, generation)
        except OSError as exc:
            self._set_status(f"Error: {exc}", 0.0, generation)
            raise LineStoreError(f"Failed to build line offset index: {exc}") from exc

        with self._lock:
            if generation != self._generation:
                raise LineStoreError(f"open of {target} was superseded")
            self._path = target
            self._offsets = offsets
            self._status = IndexingStatus("Ready", 1.0)
        logger.info("indexed %s: %d lines", target, len(offsets))
        return len(offsets)

    async def status(self) -> IndexingStatus:
        with self._lock:
            return self._status

    def _snapshot(self) -> tuple[Path, list[LineOffset]]:
        with self._lock:
            if self._path is None or self._offsets is None:
                raise LineStoreError("No file is currently open.")
            return self._path, self._offsets

    @staticmethod
    def _read_spans(path: Path, offsets: list[LineOffset], start: int, end: int) -> list[str]:
        lines: list[str] = []
        with path.open("rb") as handle:
            for index in range(start, end):
                span = offsets[index]
                handle.seek(span.offset)
                raw = handle.read(span.length)
                if len(raw) != span.length:
                    raise LineStoreError(f"Failed to read line {index}: file changed on disk")
                lines.append(decode_line(raw, index))
        return lines

    async def get_lines(self, start: int, count: int) -> list[str]:
        path, offsets = self._snapshot()
        if start < 0 or count < 0:
            raise LineStoreError(f"invalid line range start={start} count={count}")
        end = min(start + count, len(offsets))
        if start >= end:
            return []
        try:
            return await asyncio.to_thread(self._read_spans, path, offsets, start, end)
        except OSError as exc:
            raise LineStoreError(f"Failed to read lines {start}-{end - 1}: {exc}") from exc

    async def get_line(self, index: int) -> str:
        path, offsets = self._snapshot()
        if index < 0 or index >= len(offsets):
            raise LineStoreError(f"Line number {index} is out of bounds. Total lines: {len(offsets)}")
        try:
            lines = await asyncio.to_thread(self._read_spans, path, offsets, index, index + 1)
        except OSError as exc:
            raise LineStoreError(f"Failed to read line {index}: {exc}") from exc
        return lines[0]


__all__ = ["FileLineStore"]
