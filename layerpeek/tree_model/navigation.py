"""Visible-row index navigation helpers."""

from __future__ import annotations

from collections.abc import Sequence

from .types import VisibleRow


def find_row_index(rows: Sequence[VisibleRow], path: str | None) -> int | None:
    """Return the index of the row showing ``path`` via linear scan."""
    if path is None:
        return None
    for idx, row in enumerate(rows):
        if row.path == path:
            return idx
    return None


def next_changed_row_index(
    rows: Sequence[VisibleRow],
    selected_idx: int,
    direction: int,
) -> int | None:
    """Return next row carrying a change annotation in the requested direction."""
    if not rows or direction == 0:
        return None
    step = 1 if direction > 0 else -1
    idx = selected_idx + step
    while 0 <= idx < len(rows):
        if rows[idx].change_kind is not None:
            return idx
        idx += step
    return None


def next_directory_row_index(
    rows: Sequence[VisibleRow],
    selected_idx: int,
    direction: int,
) -> int | None:
    """Return next directory row index in the requested direction."""
    if not rows or direction == 0:
        return None
    step = 1 if direction > 0 else -1
    idx = selected_idx + step
    while 0 <= idx < len(rows):
        if rows[idx].is_dir:
            return idx
        idx += step
    return None
