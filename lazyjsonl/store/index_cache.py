"""Persistent cache of line-offset indexes.

Entries live under the user cache directory, one JSON file per indexed path.
An entry is only trusted while the file's size and mtime are unchanged;
anything unreadable or stale counts as a miss.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path

from platformdirs import user_cache_dir

from .types import LineOffset

APP_NAME = "lazyjsonl"
CACHE_DIR = Path(user_cache_dir(APP_NAME, appauthor=False))
CACHE_FORMAT_VERSION = 1

logger = logging.getLogger(__name__)


def cache_path_for(file_path: Path) -> Path:
    """Return the cache file used for ``file_path``."""
    digest = hashlib.sha1(str(file_path.resolve()).encode("utf-8")).hexdigest()
    return CACHE_DIR / f"{digest}.offsets.json"


def _file_fingerprint(file_path: Path) -> tuple[int, int]:
    stat = file_path.stat()
    return stat.st_size, stat.st_mtime_ns


def load_line_offset_index(file_path: Path) -> list[LineOffset] | None:
    """Load a cached index for ``file_path`` or return ``None`` on a miss."""
    cache_path = cache_path_for(file_path)
    if not cache_path.exists():
        return None
    try:
        data = json.loads(cache_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("ignoring unreadable index cache %s: %s", cache_path, exc)
        return None
    if not isinstance(data, dict) or data.get("version") != CACHE_FORMAT_VERSION:
        return None

    size, mtime_ns = _file_fingerprint(file_path)
    if data.get("size") != size or data.get("mtime_ns") != mtime_ns:
        logger.debug("index cache for %s is stale", file_path)
        return None

    raw_offsets = data.get("offsets")
    if not isinstance(raw_offsets, list):
        return None
    offsets: list[LineOffset] = []
    for item in raw_offsets:
        if (
            not isinstance(item, list)
            or len(item) != 2
            or not all(isinstance(value, int) and not isinstance(value, bool) for value in item)
        ):
            return None
        offsets.append(LineOffset(offset=item[0], length=item[1]))
    return offsets


def save_line_offset_index(file_path: Path, offsets: list[LineOffset]) -> None:
    """Persist ``offsets`` for ``file_path``.

    Write failures are logged and otherwise ignored; the cache is an
    optimization only.
    """
    try:
        size, mtime_ns = _file_fingerprint(file_path)
        payload = {
            "version": CACHE_FORMAT_VERSION,
            "path": str(file_path.resolve()),
            "size": size,
            "mtime_ns": mtime_ns,
            "offsets": [[item.offset, item.length] for item in offsets],
        }
        cache_path = cache_path_for(file_path)
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        cache_path.write_text(json.dumps(payload, separators=(",", ":")), encoding="utf-8")
    except OSError as exc:
        logger.warning("failed to save index cache for %s: %s", file_path, exc)


__all__ = [
    "CACHE_DIR",
    "cache_path_for",
    "load_line_offset_index",
    "save_line_offset_index",
]
