"""Terminal input decoding.

Translates raw stdin bytes into normalized key tokens, including SGR mouse
events (``MOUSE_<KIND>:<col>:<row>``, 1-based cells). Bytes arrive in
arbitrary chunks, so incomplete escape sequences are buffered until the next
feed.
"""

from __future__ import annotations

import codecs

_CONTROL_KEYS = {
    "\r": "ENTER",
    "\n": "ENTER",
    "\t": "TAB",
    "\x7f": "BACKSPACE",
    "\x08": "BACKSPACE",
    "\x03": "CTRL_C",
    "\x04": "CTRL_D",
    "\x15": "CTRL_U",
}

_CSI_FINAL_KEYS = {
    "A": "UP",
    "B": "DOWN",
    "C": "RIGHT",
    "D": "LEFT",
    "H": "HOME",
    "F": "END",
}

_CSI_TILDE_KEYS = {
    "1": "HOME",
    "7": "HOME",
    "4": "END",
    "8": "END",
    "3": "DELETE",
    "5": "PAGE_UP",
    "6": "PAGE_DOWN",
}


def _mouse_token(params: str, final: str) -> str:
    """Decode an SGR mouse report ``<btn;col;row`` terminated by M/m."""
    try:
        btn_s, col_s, row_s = params[1:].split(";")
        btn = int(btn_s)
        col = int(col_s)
        row = int(row_s)
    except ValueError:
        return "MOUSE"
    button = btn & 0b11
    if btn & 0b0100_0000:
        if button == 0:
            return f"MOUSE_WHEEL_UP:{col}:{row}"
        if button == 1:
            return f"MOUSE_WHEEL_DOWN:{col}:{row}"
        return "MOUSE"
    if btn & 0b0010_0000:
        return f"MOUSE_DRAG:{col}:{row}" if button == 0 else "MOUSE"
    if button == 0:
        suffix = "DOWN" if final == "M" else "UP"
        return f"MOUSE_LEFT_{suffix}:{col}:{row}"
    return "MOUSE"


def _csi_token(params: str, final: str) -> str:
    if params.startswith("<") and final in {"M", "m"}:
        return _mouse_token(params, final)
    if final == "~":
        return _CSI_TILDE_KEYS.get(params.split(";")[0], "ESC")
    base = _CSI_FINAL_KEYS.get(final)
    if base is None:
        return "ESC"
    if params == "1;2" and base in {"LEFT", "RIGHT"}:
        return f"SHIFT_{base}"
    return base


def parse_mouse_col_row(mouse_key: str) -> tuple[int | None, int | None]:
    """Parse ``MOUSE_*:col:row`` key tokens into integer coordinates."""
    parts = mouse_key.split(":")
    if len(parts) < 3:
        return None, None
    try:
        return int(parts[1]), int(parts[2])
    except ValueError:
        return None, None


class KeyDecoder:
    """Incremental byte-to-token decoder."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, data: bytes) -> list[str]:
        text = self._pending + self._decoder.decode(data)
        self._pending = ""
        tokens: list[str] = []
        i = 0
        n = len(text)
        while i < n:
            ch = text[i]
            if ch != "\x1b":
                tokens.append(_CONTROL_KEYS.get(ch, ch))
                i += 1
                continue
            if i + 1 >= n:
                # A lone trailing ESC is the Escape key itself.
                tokens.append("ESC")
                i += 1
                continue
            intro = text[i + 1]
            if intro == "O":
                if i + 2 >= n:
                    self._pending = text[i:]
                    break
                tokens.append(_CSI_FINAL_KEYS.get(text[i + 2], "ESC"))
                i += 3
                continue
            if intro != "[":
                tokens.append("ESC")
                i += 1
                continue
            j = i + 2
            while j < n and not ("\x40" <= text[j] <= "\x7e"):
                j += 1
            if j >= n:
                self._pending = text[i:]
                break
            tokens.append(_csi_token(text[i + 2:j], text[j]))
            i = j + 1
        return tokens


__all__ = ["KeyDecoder", "parse_mouse_col_row"]
