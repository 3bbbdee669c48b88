"""UI theme definitions and selection helpers.

Themes are ANSI palettes for the tree pane, change badges and status line.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reverse: str
    reset: str
    tree_marker: str
    tree_dir: str
    tree_file_default: str
    tree_symlink: str
    tree_size: str
    change_added: str
    change_modified: str
    change_deleted: str
    status_bar: str
    status_dim: str
    status_error: str


DEFAULT_THEME = UITheme(
    name="default",
    reverse="\033[7m",
    reset="\033[0m",
    tree_marker="\033[38;5;44m",
    tree_dir="\033[1;34m",
    tree_file_default="\033[38;5;252m",
    tree_symlink="\033[38;5;176m",
    tree_size="\033[38;5;109m",
    change_added="\033[38;5;42m",
    change_modified="\033[38;5;214m",
    change_deleted="\033[38;5;203m",
    status_bar="\033[1;38;5;81m",
    status_dim="\033[2;38;5;250m",
    status_error="\033[1;38;5;203m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    reverse="\033[7m",
    reset="\033[0m",
    tree_marker="\033[38;5;39m",
    tree_dir="\033[1;38;5;45m",
    tree_file_default="\033[38;5;252m",
    tree_symlink="\033[38;5;147m",
    tree_size="\033[38;5;73m",
    change_added="\033[38;5;48m",
    change_modified="\033[38;5;221m",
    change_deleted="\033[38;5;210m",
    status_bar="\033[1;38;5;45m",
    status_dim="\033[2;38;5;110m",
    status_error="\033[1;38;5;210m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reverse="\033[7m",
    reset="",
    tree_marker="",
    tree_dir="",
    tree_file_default="",
    tree_symlink="",
    tree_size="",
    change_added="",
    change_modified="",
    change_deleted="",
    status_bar="",
    status_dim="",
    status_error="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
    PLAIN_THEME.name: PLAIN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    return tuple(_THEMES)


def resolve_theme(name: str | None, no_color: bool = False) -> UITheme:
    """Return the named theme, ``plain`` when color is disabled, else default."""
    if no_color:
        return PLAIN_THEME
    if name is None:
        return DEFAULT_THEME
    return _THEMES.get(name.strip().lower(), DEFAULT_THEME)
