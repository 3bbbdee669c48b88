"""Path -> change-kind lookup built from a layer's flat diff list."""

from __future__ import annotations

from collections.abc import Iterable

from .types import ChangeKind, DiffEntry

DiffIndex = dict[str, ChangeKind]


def build_diff_index(entries: Iterable[DiffEntry] | None) -> DiffIndex:
    """Map each diff path to its change kind; the last entry for a path wins."""
    index: DiffIndex = {}
    for entry in entries or ():
        index[entry.path] = entry.change_kind
    return index


def count_changes(index: DiffIndex) -> dict[ChangeKind, int]:
    """Return per-kind totals used by the status line."""
    counts = {kind: 0 for kind in ChangeKind}
    for change_kind in index.values():
        counts[change_kind] += 1
    return counts
