"""Fixed-interval polling of backend indexing progress."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from ..errors import LazyJsonlError, StatusError
from ..store.types import IndexingStatus, LineStore

DEFAULT_POLL_INTERVAL_SECONDS = 0.5
READY_TEXT = "Ready"
STATUS_FETCH_ERROR_TEXT = "Error fetching status."

logger = logging.getLogger(__name__)


def format_status(status: IndexingStatus) -> str:
    return f"{status.message} ({status.percent()}%)"


class IndexingStatusPoller:
    """Cancellable repeating task bound to one session.

    ``start`` is a no-op while the task is alive, so at most one poll cycle is
    ever in flight.
    """

    def __init__(
        self,
        store: LineStore,
        on_display: Callable[[str], None],
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.store = store
        self.on_display = on_display
        self.interval_seconds = interval_seconds
        self.polls = 0
        self.last_status: IndexingStatus | None = None
        self.last_error: StatusError | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Begin polling; return ``False`` when already running."""
        if self.running:
            return False
        self._stopped = False
        self.last_error = None
        self._task = asyncio.get_running_loop().create_task(self._run(), name="lazyjsonl-status-poller")
        return True

    def stop(self) -> None:
        self._stopped = True
        task = self._task
        self._task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.interval_seconds)
            if self._stopped:
                return
            await self.poll_once()

    async def refresh(self) -> IndexingStatus | None:
        """Poll immediately without overlapping a scheduled cycle.

        The repeating task is cancelled first and re-armed afterwards only if
        it was running and indexing has not reached a terminal state.
        """
        was_running = self.running
        self.stop()
        status = await self.poll_once()
        if was_running and status is not None and not status.is_terminal():
            self.start()
        return status

    async def poll_once(self) -> IndexingStatus | None:
        """Run one poll cycle; stop the poller when a terminal state is seen."""
        self.polls += 1
        try:
            status = await self.store.status()
        except (LazyJsonlError, OSError) as exc:
            logger.warning("status poll failed: %s", exc)
            self.last_error = StatusError(str(exc))
            self.on_display(STATUS_FETCH_ERROR_TEXT)
            self.stop()
            return None
        self.last_status = status
        self.on_display(format_status(status))
        if status.is_terminal():
            self.stop()
            if status.progress >= 1.0 and not status.is_error():
                self.on_display(READY_TEXT)
        return status


__all__ = [
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "IndexingStatusPoller",
    "READY_TEXT",
    "STATUS_FETCH_ERROR_TEXT",
    "format_status",
]
