"""Raw-mode lifecycle and frame output of the viewer's terminal."""

from __future__ import annotations

import os
import termios
import unittest
from unittest import mock

from lazyjsonl.runtime.terminal import ENTER_VIEWER_SEQUENCE, LEAVE_VIEWER_SEQUENCE, TerminalController


def _controller() -> TerminalController:
    with mock.patch("lazyjsonl.runtime.terminal.termios.tcgetattr", return_value=[0]):
        return TerminalController(stdin_fd=0, stdout_fd=1)


class TerminalControllerTests(unittest.TestCase):
    def test_viewer_mode_switches_screen_and_mouse_and_restores_tty(self) -> None:
        saved_state = [1, 2, 3]

        with mock.patch("lazyjsonl.runtime.terminal.termios.tcgetattr", return_value=saved_state), mock.patch(
            "lazyjsonl.runtime.terminal.tty.setraw"
        ) as setraw_mock, mock.patch("lazyjsonl.runtime.terminal.os.write") as write_mock, mock.patch(
            "lazyjsonl.runtime.terminal.termios.tcsetattr"
        ) as setattr_mock:
            controller = TerminalController(stdin_fd=0, stdout_fd=1)
            controller.enable_tui_mode()
            controller.disable_tui_mode()

        setraw_mock.assert_called_once_with(0, termios.TCSAFLUSH)
        self.assertEqual(
            write_mock.call_args_list,
            [mock.call(1, ENTER_VIEWER_SEQUENCE), mock.call(1, LEAVE_VIEWER_SEQUENCE)],
        )
        self.assertIn(b"\x1b[?1006h", ENTER_VIEWER_SEQUENCE)
        self.assertTrue(LEAVE_VIEWER_SEQUENCE.endswith(b"\x1b[?1049l"))
        setattr_mock.assert_called_once_with(0, termios.TCSAFLUSH, saved_state)

    def test_raw_mode_restores_terminal_after_exception(self) -> None:
        controller = _controller()

        with mock.patch.object(controller, "enable_tui_mode") as enable_mock, mock.patch.object(
            controller, "disable_tui_mode"
        ) as disable_mock:
            with self.assertRaises(RuntimeError):
                with controller.raw_mode():
                    raise RuntimeError("viewer loop crashed")

        enable_mock.assert_called_once()
        disable_mock.assert_called_once()

    def test_write_frame_retries_partial_writes(self) -> None:
        controller = _controller()
        frame = "1 {\"a\": \"é\"}\r\n"
        encoded = frame.encode("utf-8")
        chunks: list[bytes] = []

        def short_write(fd: int, data: bytes) -> int:
            chunks.append(bytes(data[:4]))
            return min(4, len(data))

        with mock.patch("lazyjsonl.runtime.terminal.os.write", side_effect=short_write):
            controller.write_frame(frame)

        self.assertEqual(b"".join(chunks), encoded)
        self.assertGreater(len(chunks), 1)

    def test_size_reports_columns_and_rows(self) -> None:
        controller = _controller()

        with mock.patch(
            "lazyjsonl.runtime.terminal.shutil.get_terminal_size", return_value=os.terminal_size((132, 43))
        ):
            self.assertEqual(controller.size(), (132, 43))


if __name__ == "__main__":
    unittest.main()
