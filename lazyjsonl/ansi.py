"""Terminal text measurement and shaping for untrusted line content.

File content is sanitized before it reaches the screen, so these helpers work
on plain text; styling is wrapped around the shaped result by the caller.
"""

from __future__ import annotations

import re
import unicodedata

TAB_STOP = 8
_CONTROL_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f-\x9f]")


def sanitize_text(text: str) -> str:
    """Replace control characters (escape sequences included) with ``?``."""
    return _CONTROL_RE.sub("?", text)


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 8-column stop, combining marks consume no columns,
    and East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def display_width(text: str) -> int:
    col = 0
    for ch in text:
        col += char_display_width(ch, col)
    return col


def clip_line(text: str, max_cols: int) -> str:
    """Trim ``text`` to at most ``max_cols`` columns, expanding tabs."""
    if max_cols <= 0 or not text:
        return ""
    out: list[str] = []
    col = 0
    for ch in text:
        w = char_display_width(ch, col)
        if col + w > max_cols:
            break
        out.append(" " * w if ch == "\t" else ch)
        col += w
    return "".join(out)


def fit_line(text: str, width: int) -> str:
    """Clip ``text`` and pad it with spaces to exactly ``width`` columns."""
    clipped = clip_line(text, width)
    return clipped + " " * max(0, width - display_width(clipped))


def wrap_line(text: str, width: int) -> list[str]:
    """Wrap ``text`` into chunks of at most ``width`` display columns."""
    if width <= 0 or not text:
        return [""]
    wrapped: list[str] = []
    chunk: list[str] = []
    col = 0
    for ch in text:
        w = char_display_width(ch, col)
        if col + w > width and chunk:
            wrapped.append("".join(chunk))
            chunk = []
            col = 0
            w = char_display_width(ch, col)
        chunk.append(" " * w if ch == "\t" else ch)
        col += w
    wrapped.append("".join(chunk))
    return wrapped


def wrap_block(text: str, width: int) -> list[str]:
    """Sanitize and wrap every line of a multi-line block."""
    out: list[str] = []
    for line in text.split("\n"):
        out.extend(wrap_line(sanitize_text(line), width))
    return out


__all__ = [
    "TAB_STOP",
    "char_display_width",
    "clip_line",
    "display_width",
    "fit_line",
    "sanitize_text",
    "wrap_block",
    "wrap_line",
]
