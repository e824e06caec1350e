"""File lifecycle orchestration for the viewer engine.

``SessionController`` owns exactly one ``Session`` at a time. Opening a file
tears the previous session down before anything else happens, and every
asynchronous result is checked against the session that requested it so late
responses from an old file never reach the new one.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from ..errors import FetchError, LazyJsonlError, OpenError
from ..store.types import LineStore
from .cache import LineCache
from .fetch import FetchCoalescer
from .render import EMPTY_ROW_SET, RenderEngine, Row, RowSet
from .selection import SelectionController
from .status_poller import DEFAULT_POLL_INTERVAL_SECONDS, READY_TEXT, IndexingStatusPoller
from .viewport import ViewportController, Window

STATE_IDLE = "idle"
STATE_OPENING = "opening"
STATE_INDEXING = "indexing"
STATE_READY = "ready"
STATE_FAILED = "failed"

FRAME_INTERVAL_SECONDS = 1 / 60
EMPTY_CURSOR_TEXT = "Ln 0, Col 0"
IDLE_TEXT = "Idle"
_TRANSIENT_STATUS_PREFIXES = ("Fetching lines...", "Fetching line ", "Parsing JSON...")

logger = logging.getLogger(__name__)
_session_ids = itertools.count(1)


@dataclass(frozen=True)
class StatusProjection:
    """Read-only status-bar fields."""

    file_path: str
    total_lines: str
    indexing: str
    cursor: str


@dataclass(eq=False)
class Session:
    """Combined viewer state for one opened file."""

    session_id: int
    path: str
    store: LineStore
    viewport: ViewportController
    cache: LineCache
    coalescer: FetchCoalescer
    selection: SelectionController
    poller: IndexingStatusPoller
    total_lines: int = 0
    closed: bool = False

    def close(self) -> None:
        self.closed = True
        self.poller.stop()
        self.coalescer.close()
        self.selection.close()
        self.cache.clear()


class SessionController:
    """Drive open/scroll/resize/select events for the current session."""

    def __init__(
        self,
        store: LineStore,
        *,
        viewport_height: float = 0.0,
        line_height_probe: Callable[[], float] | None = None,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        frame_interval_seconds: float = FRAME_INTERVAL_SECONDS,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.store = store
        self.line_height_probe = line_height_probe
        self.poll_interval_seconds = poll_interval_seconds
        self.frame_interval_seconds = frame_interval_seconds
        self.on_change = on_change
        self.render_engine = RenderEngine(on_row_click=self.click_row)
        self.state = STATE_IDLE
        self.session: Session | None = None
        self.row_set: RowSet = EMPTY_ROW_SET
        self.last_error: LazyJsonlError | None = None
        self.viewport_height = max(0.0, viewport_height)
        self.line_height = 0.0
        self._file_path_text = ""
        self._total_lines_text = "Total Lines: 0"
        self._indexing_text = IDLE_TEXT
        self._cursor_text = EMPTY_CURSOR_TEXT
        self._render_handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # -- read-only projections -------------------------------------------------

    def status(self) -> StatusProjection:
        return StatusProjection(
            file_path=self._file_path_text,
            total_lines=self._total_lines_text,
            indexing=self._indexing_text,
            cursor=self._cursor_text,
        )

    @property
    def total_lines(self) -> int:
        return self.session.total_lines if self.session is not None else 0

    @property
    def rows(self) -> tuple[Row, ...]:
        return self.row_set.rows

    @property
    def structured_text(self) -> str:
        return self.session.selection.structured_text if self.session is not None else ""

    @property
    def active_line(self) -> int | None:
        return self.session.selection.active_index if self.session is not None else None

    @property
    def scroll_offset(self) -> float:
        return self.session.viewport.scroll_offset if self.session is not None else 0.0

    @property
    def extent(self) -> float:
        return self.render_engine.extent.height

    # -- internal helpers -------------------------------------------------------

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _is_current(self, session: Session) -> bool:
        return session is self.session and not session.closed

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("background viewer task failed", exc_info=exc)

    def _current_with_id(self, session_id: int) -> Session | None:
        session = self.session
        if session is None or session.closed or session.session_id != session_id:
            return None
        return session

    def _display_status(self, session_id: int, text: str) -> None:
        if self._current_with_id(session_id) is None:
            return
        self._indexing_text = text
        self._notify()

    def _set_transient_status(self, session_id: int, text: str) -> None:
        if self._current_with_id(session_id) is not None and self.state == STATE_READY:
            self._indexing_text = text
            self._notify()

    def _settle_transient_status(self) -> None:
        if self._indexing_text.startswith(_TRANSIENT_STATUS_PREFIXES):
            self._indexing_text = READY_TEXT

    def _total_lines_for(self, session_id: int) -> int:
        session = self._current_with_id(session_id)
        return session.total_lines if session is not None else 0

    def _new_session(self, path: str) -> Session:
        session_id = next(_session_ids)
        viewport = ViewportController(self.viewport_height)
        viewport.line_height = self.line_height
        cache = LineCache()
        return Session(
            path=path,
            store=self.store,
            viewport=viewport,
            cache=cache,
            coalescer=FetchCoalescer(self.store, cache),
            selection=SelectionController(
                self.store,
                total_lines=lambda: self._total_lines_for(session_id),
                on_status=lambda text: self._set_transient_status(session_id, text),
            ),
            poller=IndexingStatusPoller(
                self.store,
                on_display=lambda text: self._display_status(session_id, text),
                interval_seconds=self.poll_interval_seconds,
            ),
            session_id=session_id,
        )

    def _teardown(self) -> None:
        if self._render_handle is not None:
            self._render_handle.cancel()
            self._render_handle = None
        if self.session is not None:
            logger.debug("closing session %d for %s", self.session.session_id, self.session.path)
            self.session.close()
        self.session = None
        self.row_set = EMPTY_ROW_SET
        self.render_engine.update_extent(0, self.line_height)

    def _paint(self, session: Session, window: Window) -> None:
        self.row_set = self.render_engine.render(
            window,
            session.cache,
            session.selection.active_index,
            session.viewport.line_height,
        )
        self._notify()

    def _fail_open(self, session: Session, exc: BaseException) -> None:
        logger.warning("failed to open %s: %s", session.path, exc)
        self.last_error = OpenError(str(exc))
        self._teardown()
        self.state = STATE_FAILED
        self._file_path_text = f"Error: {exc}"
        self._total_lines_text = "Total Lines: 0"
        self._indexing_text = f"Error opening: {exc}"
        self._notify()

    # -- lifecycle --------------------------------------------------------------

    async def open(self, path: str) -> bool:
        """Tear down the current session and open ``path`` in a fresh one.

        Returns ``True`` once the file is indexed and the first window is
        rendered; ``False`` when the open failed or was superseded.
        """
        self._teardown()
        session = self._new_session(path)
        self.session = session
        self.state = STATE_OPENING
        self.last_error = None
        self._file_path_text = path
        self._total_lines_text = "Total Lines: 0"
        self._cursor_text = EMPTY_CURSOR_TEXT
        self._indexing_text = "Opening file... (0%)"
        self._notify()

        session.poller.start()
        self.state = STATE_INDEXING
        try:
            total_lines = await self.store.open(path)
        except (LazyJsonlError, OSError) as exc:
            if self._is_current(session):
                self._fail_open(session, exc)
            return False
        if not self._is_current(session):
            return False

        session.total_lines = total_lines
        self._total_lines_text = f"Total Lines: {total_lines}"
        await session.poller.refresh()
        if not self._is_current(session):
            return False

        self.line_height = session.viewport.ensure_line_height(self.line_height_probe)
        self.state = STATE_READY
        logger.info("opened %s (%d lines)", path, total_lines)
        await self.render_pass()
        return self._is_current(session)

    def submit_path(self, path: str) -> asyncio.Task[Any] | None:
        """Accept a file path from a picker, prompt or drop gesture."""
        if not path:
            return None
        return self._spawn(self.open(path))

    async def close(self) -> None:
        self._teardown()
        self.state = STATE_IDLE
        self._file_path_text = ""
        self._total_lines_text = "Total Lines: 0"
        self._indexing_text = IDLE_TEXT
        self._cursor_text = EMPTY_CURSOR_TEXT
        tasks = [task for task in self._tasks if task is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # -- rendering --------------------------------------------------------------

    def request_render(self) -> None:
        """Schedule one render pass for the next frame; bursts collapse."""
        if self._render_handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._render_handle = loop.call_later(self.frame_interval_seconds, self._start_scheduled_render)

    def _start_scheduled_render(self) -> None:
        self._render_handle = None
        self._spawn(self.render_pass())

    async def render_pass(self) -> None:
        """Render the current window, filling the cache first where needed."""
        session = self.session
        if session is None or session.closed:
            self.row_set = EMPTY_ROW_SET
            self._notify()
            return
        viewport = session.viewport
        if session.total_lines == 0 or viewport.line_height <= 0:
            self.render_engine.update_extent(session.total_lines, viewport.line_height)
            self.row_set = EMPTY_ROW_SET
            self._notify()
            return

        self.render_engine.update_extent(session.total_lines, viewport.line_height)
        window = viewport.window(session.total_lines)
        self._paint(session, window)
        if not session.cache.missing(window.start, window.end):
            return

        self._set_transient_status(session.session_id, "Fetching lines...")
        try:
            await session.coalescer.ensure_range(window.start, window.end)
        except FetchError as exc:
            if self._is_current(session):
                self.last_error = exc
                self._indexing_text = f"Error: {exc}"
                # Runs filled before the failure replace their placeholders.
                self._paint(session, viewport.window(session.total_lines))
            return
        if not self._is_current(session):
            return
        self._settle_transient_status()
        self._paint(session, viewport.window(session.total_lines))

    # -- viewport events --------------------------------------------------------

    def scroll_to(self, offset: float) -> bool:
        session = self.session
        if session is None or session.viewport.line_height <= 0:
            return False
        if not session.viewport.scroll_to(offset, session.total_lines):
            return False
        self.request_render()
        return True

    def scroll_by(self, delta: float) -> bool:
        return self.scroll_to(self.scroll_offset + delta)

    def scroll_lines(self, count: int) -> bool:
        return self.scroll_by(count * self.line_height)

    def scroll_pages(self, count: int) -> bool:
        session = self.session
        if session is None:
            return False
        page = max(1, session.viewport.visible_count - 1)
        return self.scroll_lines(count * page)

    def resize(self, viewport_height: float) -> bool:
        self.viewport_height = max(0.0, viewport_height)
        session = self.session
        if session is None or not session.viewport.resize(self.viewport_height):
            return False
        session.viewport.scroll_to(session.viewport.scroll_offset, session.total_lines)
        self.request_render()
        return True

    # -- selection --------------------------------------------------------------

    def _repaint(self, session: Session) -> None:
        viewport = session.viewport
        if session.total_lines == 0 or viewport.line_height <= 0:
            return
        self._paint(session, viewport.window(session.total_lines))

    async def select(self, index: int) -> bool:
        """Make ``index`` the active line and refresh the structured view.

        The active-row flag is repainted immediately; the structured view
        follows once the line arrives, unless a newer selection superseded it.
        """
        session = self.session
        if session is None or session.closed:
            return False
        serial = session.selection.activate(index)
        self._cursor_text = f"Ln {index + 1}, Col 1" if serial is not None else EMPTY_CURSOR_TEXT
        self._repaint(session)
        if serial is None:
            return False
        applied = await session.selection.load(serial, index)
        if not self._is_current(session):
            return False
        self._settle_transient_status()
        self._notify()
        return applied

    def click_row(self, index: int) -> asyncio.Task[Any]:
        return self._spawn(self.select(index))

    def move_cursor_to(self, index: int) -> asyncio.Task[Any] | None:
        """Select line ``index`` (clamped) and scroll it into view."""
        session = self.session
        if session is None or session.total_lines == 0 or session.viewport.line_height <= 0:
            return None
        target = max(0, min(session.total_lines - 1, index))
        if session.viewport.scroll_to_reveal(target, session.total_lines):
            self.request_render()
        return self.click_row(target)

    def move_cursor(self, delta: int) -> asyncio.Task[Any] | None:
        """Move the active line by ``delta``; start from the top row if none."""
        session = self.session
        if session is None:
            return None
        current = session.selection.active_index
        if current is None:
            return self.move_cursor_to(session.viewport.first_visible())
        return self.move_cursor_to(current + delta)


__all__ = [
    "EMPTY_CURSOR_TEXT",
    "FRAME_INTERVAL_SECONDS",
    "IDLE_TEXT",
    "STATE_FAILED",
    "STATE_IDLE",
    "STATE_INDEXING",
    "STATE_OPENING",
    "STATE_READY",
    "Session",
    "SessionController",
    "StatusProjection",
]
