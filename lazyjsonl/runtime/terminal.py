"""Raw terminal session for the two-pane JSONL viewer.

The viewer draws whole frames on the alternate screen and reads wheel and
click events as SGR mouse reports, so both are switched on for the lifetime
of ``raw_mode`` and switched off again even when the loop dies.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty

FALLBACK_SIZE = (80, 24)

# Alternate screen with the cursor hidden; press and drag reports use SGR encoding.
ENTER_VIEWER_SEQUENCE = b"\x1b[?1049h\x1b[?25l\x1b[?1000h\x1b[?1002h\x1b[?1006h"
LEAVE_VIEWER_SEQUENCE = b"\x1b[?1000l\x1b[?1002l\x1b[?1006l\x1b[?25h\x1b[?1049l"


class TerminalController:
    """Own the tty the viewer draws on."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_VIEWER_SEQUENCE)

    def disable_tui_mode(self) -> None:
        """Put the shell's screen and line discipline back as they were."""
        os.write(self.stdout_fd, LEAVE_VIEWER_SEQUENCE)
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)``; the frame layout splits these into panes."""
        term = shutil.get_terminal_size(FALLBACK_SIZE)
        return term.columns, term.lines

    def write_frame(self, frame: str) -> None:
        """Write one composed frame, looping until the tty took every byte."""
        data = frame.encode("utf-8", errors="replace")
        while data:
            written = os.write(self.stdout_fd, data)
            data = data[written:]

    @contextlib.contextmanager
    def raw_mode(self):
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()


__all__ = ["ENTER_VIEWER_SEQUENCE", "LEAVE_VIEWER_SEQUENCE", "TerminalController"]
