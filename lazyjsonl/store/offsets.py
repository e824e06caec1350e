"""Line-offset indexing and byte-span decoding for line-delimited files."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from .types import LineOffset

READ_CHUNK_BYTES = 1 << 20
UTF8_BOM = "\ufeff"


def build_line_offset_index(
    path: Path,
    on_progress: Callable[[int, int], None] | None = None,
) -> list[LineOffset]:
    """Scan ``path`` once and record the byte span of every line.

    Spans include the line terminator. A trailing fragment without a newline
    is still a line; an empty file yields an empty index. ``on_progress`` is
    called with ``(bytes_read, total_bytes)`` after each chunk.
    """
    total_bytes = path.stat().st_size
    offsets: list[LineOffset] = []
    line_start = 0
    position = 0
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            search_from = 0
            while True:
                newline = chunk.find(b"\n", search_from)
                if newline < 0:
                    break
                line_end = position + newline + 1
                offsets.append(LineOffset(offset=line_start, length=line_end - line_start))
                line_start = line_end
                search_from = newline + 1
            position += len(chunk)
            if on_progress is not None:
                on_progress(position, total_bytes)
    if position > line_start:
        offsets.append(LineOffset(offset=line_start, length=position - line_start))
    return offsets


def decode_line(raw: bytes, index: int) -> str:
    """Decode one stored line span into display text.

    The terminator (``\\n`` or ``\\r\\n``) is dropped, invalid UTF-8 becomes
    replacement characters, and a leading BOM on the first line is removed.
    """
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    text = raw.decode("utf-8", errors="replace")
    if index == 0 and text.startswith(UTF8_BOM):
        text = text[len(UTF8_BOM):]
    return text


__all__ = ["READ_CHUNK_BYTES", "build_line_offset_index", "decode_line"]
