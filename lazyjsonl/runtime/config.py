"""Persistent JSON config helpers.

Stores the raw/structured split width, poll interval, index-cache toggle and
theme name. All access is defensive: malformed or missing config falls back
to defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "lazyjsonl"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_POLL_INTERVAL_MS = 500
MIN_POLL_INTERVAL_MS = 50

logger = logging.getLogger(__name__)


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.debug("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Write errors are logged and ignored so a read-only config directory never
    breaks the viewer.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("failed to save config %s: %s", CONFIG_PATH, exc)


def load_left_pane_percent() -> float | None:
    """Read the raw-pane width percentage constrained to ``(0, 100)``."""
    value = load_config().get("left_pane_percent")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value <= 0 or value >= 100:
        return None
    return float(value)


def save_left_pane_percent(total_width: int, left_width: int) -> None:
    """Store the raw-pane width as a percentage clamped to ``[1, 99]``."""
    if total_width <= 0:
        return
    percent = max(1.0, min(99.0, (left_width / total_width) * 100.0))
    config = load_config()
    config["left_pane_percent"] = round(percent, 2)
    save_config(config)


def load_poll_interval_seconds() -> float:
    """Return the indexing-status poll interval in seconds."""
    value = load_config().get("poll_interval_ms")
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_POLL_INTERVAL_MS / 1000.0
    return max(MIN_POLL_INTERVAL_MS, value) / 1000.0


def load_index_cache_enabled() -> bool:
    """Return whether line-offset indexes are cached on disk.

    Only explicit booleans are honoured; anything else means enabled.
    """
    value = load_config().get("index_cache")
    return value if isinstance(value, bool) else True


def load_theme_name() -> str | None:
    """Load persisted UI theme name, returning ``None`` when unset/invalid."""
    value = load_config().get("theme")
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def save_theme_name(theme_name: str) -> None:
    """Persist selected UI theme name."""
    stripped = str(theme_name).strip()
    if not stripped:
        return
    config = load_config()
    config["theme"] = stripped
    save_config(config)
