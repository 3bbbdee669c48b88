"""Formatting helpers for visible tree rows."""

from __future__ import annotations

from collections.abc import Collection

from ..ui_theme import DEFAULT_THEME, UITheme
from .types import ChangeKind, NodeKind, VisibleRow

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(size: int) -> str:
    """Human-readable byte count: ``0 B``, ``512 B``, ``1.5 KB``, ``12 MB``."""
    if size <= 0:
        return "0 B"
    exponent = 0
    while exponent < len(_SIZE_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = size / 1024**exponent
    if exponent > 0 and value < 10:
        return f"{value:.1f} {_SIZE_UNITS[exponent]}"
    return f"{round(value)} {_SIZE_UNITS[exponent]}"


def change_badge(change_kind: ChangeKind | None, theme: UITheme | None = None) -> str:
    """Return the colored ``[A]``/``[M]``/``[D]`` badge for a change kind."""
    if change_kind is None:
        return ""
    active_theme = theme or DEFAULT_THEME
    color = {
        ChangeKind.ADDED: active_theme.change_added,
        ChangeKind.MODIFIED: active_theme.change_modified,
        ChangeKind.DELETED: active_theme.change_deleted,
    }[change_kind]
    return f" {color}[{change_kind.value[0].upper()}]{active_theme.reset}"


def format_tree_row(
    row: VisibleRow,
    expanded: Collection[str],
    show_size_labels: bool = True,
    theme: UITheme | None = None,
) -> str:
    """Render one visible row as ANSI-styled display text."""
    active_theme = theme or DEFAULT_THEME
    reset = active_theme.reset
    indent = "  " * row.depth
    badge = change_badge(row.change_kind, active_theme)
    if row.is_dir:
        marker = "▾ " if row.path in expanded else "▸ "
        return (
            f"{indent}{active_theme.tree_marker}{marker}{reset}"
            f"{active_theme.tree_dir}{row.name}/{reset}{badge}"
        )

    if row.kind is NodeKind.SYMLINK:
        target = f" -> {row.link_target}" if row.link_target else ""
        return f"{indent}{active_theme.tree_marker}↗ {reset}{active_theme.tree_symlink}{row.name}{target}{reset}{badge}"

    size_label = ""
    if show_size_labels and row.size > 0:
        size_label = f"{active_theme.tree_size} [{format_bytes(row.size)}]{reset}"
    return f"{indent}  {active_theme.tree_file_default}{row.name}{reset}{size_label}{badge}"
