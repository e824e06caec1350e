"""Interactive terminal viewer and non-interactive print modes.

The interactive loop is wiring only: stdin bytes become key tokens, tokens
become ``SessionController`` events, and controller changes schedule at most
one frame redraw per event-loop turn.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from pathlib import Path

from ..ansi import clip_line, sanitize_text
from ..engine.session import SessionController
from ..errors import LazyJsonlError, LineStoreError, OpenError
from ..store import FileLineStore
from ..ui_theme import UITheme, available_theme_names, resolve_theme
from . import config
from .frame import FrameContext, FrameLayout, build_frame, rows_by_screen_row, structured_lines
from .input import KeyDecoder, parse_mouse_col_row
from .terminal import TerminalController

TERMINAL_LINE_HEIGHT = 1.0
WHEEL_LINES = 3
PANE_RESIZE_STEP = 2
READ_CHUNK_BYTES = 4096

logger = logging.getLogger(__name__)


class ViewerApp:
    """Bind one ``SessionController`` to a raw-mode terminal."""

    def __init__(
        self,
        controller: SessionController,
        terminal: TerminalController,
        theme: UITheme,
        *,
        no_color: bool = False,
    ) -> None:
        self.controller = controller
        self.terminal = terminal
        self.theme = theme
        self.no_color = no_color
        self.columns, self.lines = terminal.size()
        percent = config.load_left_pane_percent()
        self.left_width = round(self.columns * percent / 100.0) if percent is not None else self.columns // 2
        self.structured_start = 0
        self.prompt: str | None = None
        self.quit = False
        self._last_structured_text = ""
        self._draw_scheduled = False
        self._decoder = KeyDecoder()
        self._keys: asyncio.Queue[str] = asyncio.Queue()
        controller.on_change = self.mark_dirty
        controller.line_height_probe = lambda: TERMINAL_LINE_HEIGHT

    def layout(self) -> FrameLayout:
        return FrameLayout.build(self.columns, self.lines, self.left_width, self.controller.total_lines)

    def sync_size(self) -> None:
        self.columns, self.lines = self.terminal.size()
        layout = self.layout()
        self.left_width = layout.left_width
        self.controller.resize(layout.content_rows * TERMINAL_LINE_HEIGHT)
        self.mark_dirty()

    def mark_dirty(self) -> None:
        if self._draw_scheduled:
            return
        self._draw_scheduled = True
        asyncio.get_running_loop().call_soon(self.draw)

    def draw(self) -> None:
        self._draw_scheduled = False
        if self.quit:
            return
        controller = self.controller
        if controller.structured_text != self._last_structured_text:
            self._last_structured_text = controller.structured_text
            self.structured_start = 0
        context = FrameContext(
            layout=self.layout(),
            row_set=controller.row_set,
            scroll_offset=controller.scroll_offset,
            line_height=controller.line_height or TERMINAL_LINE_HEIGHT,
            extent=controller.extent,
            structured_text=controller.structured_text,
            structured_start=self.structured_start,
            status=controller.status(),
            theme=self.theme,
            prompt=self.prompt,
        )
        self.terminal.write_frame(build_frame(context))

    def _on_readable(self) -> None:
        try:
            data = os.read(self.terminal.stdin_fd, READ_CHUNK_BYTES)
        except OSError as exc:
            logger.error("stdin read failed: %s", exc)
            self.quit = True
            self._keys.put_nowait("")
            return
        if not data:
            self.quit = True
            self._keys.put_nowait("")
            return
        for key in self._decoder.feed(data):
            self._keys.put_nowait(key)

    async def run(self, path: str | None = None) -> None:
        loop = asyncio.get_running_loop()
        loop.add_reader(self.terminal.stdin_fd, self._on_readable)
        loop.add_signal_handler(signal.SIGWINCH, self.sync_size)
        try:
            self.sync_size()
            if path:
                self.controller.submit_path(path)
            while not self.quit:
                key = await self._keys.get()
                if key:
                    self.handle_key(key)
        finally:
            self.quit = True
            loop.remove_signal_handler(signal.SIGWINCH)
            loop.remove_reader(self.terminal.stdin_fd)
            await self.controller.close()

    # -- key dispatch -----------------------------------------------------------

    def handle_key(self, key: str) -> None:
        if self.prompt is not None:
            self._handle_prompt_key(key)
        elif key.startswith("MOUSE"):
            self._handle_mouse(key)
        else:
            self._handle_normal_key(key)
        self.mark_dirty()

    def _handle_prompt_key(self, key: str) -> None:
        if key == "ESC" or key == "CTRL_C":
            self.prompt = None
        elif key == "ENTER":
            submitted = self.prompt.strip() if self.prompt else ""
            self.prompt = None
            if submitted:
                self.controller.submit_path(str(Path(submitted).expanduser()))
        elif key == "BACKSPACE":
            self.prompt = self.prompt[:-1] if self.prompt else ""
        elif key == "CTRL_U":
            self.prompt = ""
        elif len(key) == 1 and key.isprintable():
            self.prompt = (self.prompt or "") + key

    def _handle_normal_key(self, key: str) -> None:
        controller = self.controller
        if key in {"q", "CTRL_C"}:
            self.quit = True
        elif key in {"j", "DOWN"}:
            controller.move_cursor(1)
        elif key in {"k", "UP"}:
            controller.move_cursor(-1)
        elif key in {"PAGE_DOWN", " ", "CTRL_D"}:
            controller.scroll_pages(1)
        elif key in {"PAGE_UP", "b", "CTRL_U"}:
            controller.scroll_pages(-1)
        elif key in {"g", "HOME"}:
            controller.move_cursor_to(0)
        elif key in {"G", "END"}:
            controller.move_cursor_to(controller.total_lines - 1)
        elif key == "ENTER":
            controller.move_cursor(0)
        elif key == "J":
            self._scroll_structured(WHEEL_LINES)
        elif key == "K":
            self._scroll_structured(-WHEEL_LINES)
        elif key == "o":
            self.prompt = ""
        elif key == "t":
            self._cycle_theme()
        elif key in {"SHIFT_LEFT", "SHIFT_RIGHT"}:
            self._resize_panes(-PANE_RESIZE_STEP if key == "SHIFT_LEFT" else PANE_RESIZE_STEP)

    def _handle_mouse(self, key: str) -> None:
        col, row = parse_mouse_col_row(key)
        if col is None or row is None:
            return
        layout = self.layout()
        if key.startswith("MOUSE_WHEEL_"):
            delta = WHEEL_LINES if key.startswith("MOUSE_WHEEL_DOWN") else -WHEEL_LINES
            if layout.in_structured_pane(col):
                self._scroll_structured(delta)
            else:
                self.controller.scroll_lines(delta)
            return
        if not key.startswith("MOUSE_LEFT_DOWN") or not layout.in_raw_pane(col):
            return
        content_row = layout.content_row_for(row)
        if content_row is None:
            return
        placed = rows_by_screen_row(
            self.controller.row_set,
            self.controller.scroll_offset,
            self.controller.line_height or TERMINAL_LINE_HEIGHT,
        )
        clicked = placed.get(content_row)
        if clicked is not None:
            self.controller.render_engine.click(clicked)

    def _scroll_structured(self, delta: int) -> None:
        layout = self.layout()
        total = len(structured_lines(self.controller.structured_text, layout.right_width))
        max_start = max(0, total - layout.content_rows)
        self.structured_start = max(0, min(max_start, self.structured_start + delta))

    def _resize_panes(self, delta: int) -> None:
        previous = self.left_width
        self.left_width = FrameLayout.build(
            self.columns, self.lines, self.left_width + delta, self.controller.total_lines
        ).left_width
        if self.left_width != previous:
            config.save_left_pane_percent(self.columns, self.left_width)

    def _cycle_theme(self) -> None:
        if self.no_color:
            return
        names = available_theme_names()
        current = names.index(self.theme.name) if self.theme.name in names else -1
        next_name = names[(current + 1) % len(names)]
        self.theme = resolve_theme(next_name)
        config.save_theme_name(next_name)


# -- non-interactive modes ------------------------------------------------------


async def render_window_text(
    store: FileLineStore,
    path: str,
    max_lines: int,
    max_cols: int,
) -> str:
    """Open ``path`` and return the first ``max_lines`` numbered lines."""
    controller = SessionController(
        store,
        viewport_height=max(1, max_lines) * TERMINAL_LINE_HEIGHT,
        line_height_probe=lambda: TERMINAL_LINE_HEIGHT,
    )
    try:
        if not await controller.open(path):
            raise OpenError(controller.status().indexing)
        if controller.last_error is not None:
            raise controller.last_error
        gutter = len(str(max(1, controller.total_lines)))
        out: list[str] = []
        for row in controller.row_set.rows[:max_lines]:
            line = f"{row.label.rjust(gutter)} {sanitize_text(row.text)}"
            out.append(clip_line(line, max_cols) + "\n")
        return "".join(out)
    finally:
        await controller.close()


async def render_structured_text(store: FileLineStore, path: str, line_number: int) -> str:
    """Open ``path`` and return the structured view of 1-based ``line_number``."""
    controller = SessionController(store, line_height_probe=lambda: TERMINAL_LINE_HEIGHT)
    try:
        if not await controller.open(path):
            raise OpenError(controller.status().indexing)
        total = controller.total_lines
        if not 1 <= line_number <= total:
            raise LineStoreError(f"Line {line_number} is out of range (file has {total} lines).")
        await controller.select(line_number - 1)
        return controller.structured_text + "\n"
    finally:
        await controller.close()


async def _run_interactive(
    path: str | None,
    store: FileLineStore,
    theme: UITheme,
    no_color: bool,
    poll_interval_seconds: float,
) -> None:
    terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    controller = SessionController(store, poll_interval_seconds=poll_interval_seconds)
    app = ViewerApp(controller, terminal, theme, no_color=no_color)
    with terminal.raw_mode():
        await app.run(path)


def run_pager(
    path: Path | None,
    *,
    theme_name: str | None = None,
    no_color: bool = False,
    nopager: bool = False,
    line_number: int | None = None,
    max_cols: int = 80,
    max_lines: int = 24,
    use_index_cache: bool = True,
) -> None:
    """Launch the interactive viewer or one of the print-and-exit modes."""
    store = FileLineStore(use_index_cache=use_index_cache)
    target = str(path) if path is not None else None
    try:
        if line_number is not None and target is not None:
            sys.stdout.write(asyncio.run(render_structured_text(store, target, line_number)))
            return
        if target is not None and (nopager or not os.isatty(sys.stdin.fileno())):
            sys.stdout.write(asyncio.run(render_window_text(store, target, max_lines, max_cols)))
            return
        theme = resolve_theme(theme_name or config.load_theme_name(), no_color=no_color)
        asyncio.run(
            _run_interactive(target, store, theme, no_color, config.load_poll_interval_seconds())
        )
    except LazyJsonlError as exc:
        raise SystemExit(str(exc)) from exc


__all__ = ["ViewerApp", "render_structured_text", "render_window_text", "run_pager"]
