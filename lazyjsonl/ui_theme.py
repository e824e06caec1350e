"""UI theme definitions and selection helpers.

Themes are ANSI palettes for viewer chrome only: gutter, active row,
scrollbar and status bar. Line content itself is never colorized.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by the frame renderer."""

    name: str
    divider: str
    reverse: str
    reset: str
    gutter: str
    gutter_active: str
    pending: str
    scrollbar_track: str
    scrollbar_thumb: str
    pane_title: str
    status_bar: str
    status_error: str
    prompt: str


DEFAULT_THEME = UITheme(
    name="default",
    divider="\033[2m",
    reverse="\033[7m",
    reset="\033[0m",
    gutter="\033[38;5;242m",
    gutter_active="\033[1;38;5;229m",
    pending="\033[2;38;5;245m",
    scrollbar_track="\033[38;5;238m",
    scrollbar_thumb="\033[38;5;250m",
    pane_title="\033[1;38;5;81m",
    status_bar="\033[7m",
    status_error="\033[1;38;5;203m",
    prompt="\033[1;38;5;81m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    divider="\033[2;38;5;31m",
    reverse="\033[7m",
    reset="\033[0m",
    gutter="\033[38;5;67m",
    gutter_active="\033[1;38;5;45m",
    pending="\033[2;38;5;110m",
    scrollbar_track="\033[38;5;24m",
    scrollbar_thumb="\033[38;5;117m",
    pane_title="\033[1;38;5;45m",
    status_bar="\033[48;5;24;38;5;153m",
    status_error="\033[1;38;5;215m",
    prompt="\033[1;38;5;45m",
)

PLAIN_THEME = UITheme(
    name="plain",
    divider="",
    reverse="",
    reset="",
    gutter="",
    gutter_active="",
    pending="",
    scrollbar_track="",
    scrollbar_thumb="",
    pane_title="",
    status_bar="",
    status_error="",
    prompt="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    if not name:
        return DEFAULT_THEME.name
    candidate = str(name).strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return concrete theme for requested name and color mode."""
    if no_color:
        return PLAIN_THEME
    return _THEMES[normalize_theme_name(name)]


__all__ = [
    "UITheme",
    "DEFAULT_THEME",
    "OCEAN_THEME",
    "PLAIN_THEME",
    "available_theme_names",
    "normalize_theme_name",
    "resolve_theme",
]
