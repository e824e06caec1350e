"""Regression tests for raw-key decoding.

Covers partial escape sequences across reads, arrow and paging keys, and
SGR mouse reports used for wheel scrolling and row clicks.
"""

import unittest

from lazyjsonl.runtime.input import KeyDecoder, parse_mouse_col_row


class KeyDecoderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.decoder = KeyDecoder()

    def test_printable_and_control_keys(self) -> None:
        self.assertEqual(self.decoder.feed(b"jk\r\x7f\x03"), ["j", "k", "ENTER", "BACKSPACE", "CTRL_C"])

    def test_arrow_and_paging_sequences(self) -> None:
        self.assertEqual(
            self.decoder.feed(b"\x1b[A\x1b[B\x1b[5~\x1b[6~\x1b[H\x1b[4~"),
            ["UP", "DOWN", "PAGE_UP", "PAGE_DOWN", "HOME", "END"],
        )

    def test_application_cursor_mode_arrows(self) -> None:
        self.assertEqual(self.decoder.feed(b"\x1bOA\x1bOB"), ["UP", "DOWN"])

    def test_shift_arrows_resize_tokens(self) -> None:
        self.assertEqual(self.decoder.feed(b"\x1b[1;2D\x1b[1;2C"), ["SHIFT_LEFT", "SHIFT_RIGHT"])

    def test_lone_escape_is_escape_key(self) -> None:
        self.assertEqual(self.decoder.feed(b"\x1b"), ["ESC"])

    def test_sequence_split_across_reads_is_buffered(self) -> None:
        self.assertEqual(self.decoder.feed(b"\x1b[<0;12"), [])
        self.assertEqual(self.decoder.feed(b";5M"), ["MOUSE_LEFT_DOWN:12:5"])

    def test_multibyte_utf8_split_across_reads(self) -> None:
        self.assertEqual(self.decoder.feed("é".encode("utf-8")[:1]), [])
        self.assertEqual(self.decoder.feed("é".encode("utf-8")[1:]), ["é"])

    def test_mouse_wheel_and_release_reports(self) -> None:
        self.assertEqual(
            self.decoder.feed(b"\x1b[<64;3;4M\x1b[<65;3;4M\x1b[<0;3;4m"),
            ["MOUSE_WHEEL_UP:3:4", "MOUSE_WHEEL_DOWN:3:4", "MOUSE_LEFT_UP:3:4"],
        )

    def test_parse_mouse_col_row(self) -> None:
        self.assertEqual(parse_mouse_col_row("MOUSE_WHEEL_UP:7:9"), (7, 9))
        self.assertEqual(parse_mouse_col_row("MOUSE"), (None, None))
        self.assertEqual(parse_mouse_col_row("MOUSE_DRAG:x:2"), (None, None))


if __name__ == "__main__":
    unittest.main()
