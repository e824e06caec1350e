"""Coalesced cache fills against the backend line store.

Missing indices are grouped into maximal contiguous runs so each run costs a
single ``get_lines`` request. Fetches still in flight from an earlier call are
joined instead of re-issued.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..errors import FetchError, LazyJsonlError
from ..store.types import LineStore
from .cache import LineCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchRange:
    """Contiguous backend request ``[start, start + count)``."""

    start: int
    count: int

    @property
    def end(self) -> int:
        return self.start + self.count


def coalesce(indices: Iterable[int]) -> list[FetchRange]:
    """Group ascending indices into maximal contiguous runs in one pass."""
    ranges: list[FetchRange] = []
    run_start: int | None = None
    previous = 0
    for index in indices:
        if run_start is None:
            run_start = index
        elif index != previous + 1:
            ranges.append(FetchRange(run_start, previous - run_start + 1))
            run_start = index
        previous = index
    if run_start is not None:
        ranges.append(FetchRange(run_start, previous - run_start + 1))
    return ranges


class FetchCoalescer:
    """Fill one session's ``LineCache`` from a ``LineStore``."""

    def __init__(self, store: LineStore, cache: LineCache) -> None:
        self.store = store
        self.cache = cache
        self.requests_issued = 0
        self._in_flight: dict[int, asyncio.Future[bool]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def in_flight(self, index: int) -> bool:
        return index in self._in_flight

    def close(self) -> None:
        """Abandon the session: no new requests, and waiters are released."""
        self._closed = True
        for future in set(self._in_flight.values()):
            if not future.done():
                future.set_result(False)
        self._in_flight.clear()

    def _plan(self, indices: Iterable[int], waits: list[asyncio.Future[bool]]) -> list[FetchRange]:
        """Split ``indices`` into runs to issue and in-flight fetches to join."""
        to_issue: list[int] = []
        for index in indices:
            if index in self.cache:
                continue
            future = self._in_flight.get(index)
            if future is None:
                to_issue.append(index)
            elif future not in waits:
                waits.append(future)
        return coalesce(to_issue)

    async def _issue(self, fetch_range: FetchRange) -> bool:
        """Fetch one run; return whether every requested line arrived."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[bool] = loop.create_future()
        for index in range(fetch_range.start, fetch_range.end):
            self._in_flight[index] = future
        succeeded = False
        try:
            self.requests_issued += 1
            lines = await self.store.get_lines(fetch_range.start, fetch_range.count)
            if not self._closed:
                self.cache.store_run(fetch_range.start, lines[: fetch_range.count])
            succeeded = len(lines) >= fetch_range.count
        finally:
            for index in range(fetch_range.start, fetch_range.end):
                if self._in_flight.get(index) is future:
                    del self._in_flight[index]
            if not future.done():
                future.set_result(succeeded)
        return succeeded

    async def ensure_range(self, start: int, end: int) -> None:
        """Guarantee every index of ``[start, end)`` is cached on success.

        Runs are issued in ascending order. The first failing run stops the
        remaining unissued runs of this call; runs already stored stay valid.
        Raises ``FetchError`` once for the whole call.
        """
        if self._closed:
            raise FetchError("session closed")
        if start >= end:
            return
        waits: list[asyncio.Future[bool]] = []
        runs = self._plan(self.cache.missing(start, end), waits)
        failure: str | None = None
        for planned in runs:
            if self._closed:
                failure = "session closed"
                break
            # Earlier awaits may have let another call claim part of this run.
            for fetch_range in self._plan(range(planned.start, planned.end), waits):
                try:
                    if not await self._issue(fetch_range):
                        failure = f"short read for lines {fetch_range.start + 1}-{fetch_range.end}"
                except (LazyJsonlError, OSError) as exc:
                    failure = f"failed to load lines {fetch_range.start + 1}-{fetch_range.end}: {exc}"
                if failure is not None:
                    break
            if failure is not None:
                break

        if waits:
            await asyncio.gather(*waits)

        missing = tuple(self.cache.missing(start, end))
        if failure is None and missing:
            failure = f"{len(missing)} line(s) unavailable starting at line {missing[0] + 1}"
        if failure is not None:
            logger.warning("fetch failed for [%d, %d): %s", start, end, failure)
            raise FetchError(failure, missing)


__all__ = ["FetchCoalescer", "FetchRange", "coalesce"]
