"""Datatypes for layer filesystem snapshots, diffs, and rendered tree rows."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class NodeKind(str, Enum):
    """Filesystem entry type as reported by a layer listing."""

    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"


class ChangeKind(str, Enum):
    """How a layer changed one path relative to the previous layer."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


ROOT_PATH = "/"


@dataclass(frozen=True)
class Node:
    """One entry of a layer snapshot with recursively nested children.

    ``children`` is only populated for directories and keeps the listing
    order of the source; nothing downstream re-sorts it.
    """

    name: str
    path: str
    kind: NodeKind
    size: int = 0
    link_target: str | None = None
    children: tuple["Node", ...] = ()

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIR


@dataclass(frozen=True)
class DiffEntry:
    """One path-level change introduced by a layer."""

    path: str
    kind: NodeKind
    change_kind: ChangeKind
    size: int = 0


@dataclass(frozen=True)
class VisibleRow:
    """One rendered row of the tree pane at the current expansion state."""

    path: str
    depth: int
    is_dir: bool
    parent_path: str | None
    name: str = ""
    kind: NodeKind = NodeKind.FILE
    size: int = 0
    link_target: str | None = None
    change_kind: ChangeKind | None = None


def parent_path_of(path: str) -> str:
    """Return the ``/``-separated parent of ``path`` (root is its own parent)."""
    if path == ROOT_PATH:
        return ROOT_PATH
    head, _sep, _tail = path.rstrip("/").rpartition("/")
    return head or ROOT_PATH


def is_direct_child_path(parent: str, child: str) -> bool:
    """Return whether ``child`` sits immediately below ``parent``."""
    if child == ROOT_PATH or child == parent:
        return False
    return parent_path_of(child) == parent


__all__ = [
    "NodeKind",
    "ChangeKind",
    "ROOT_PATH",
    "Node",
    "DiffEntry",
    "VisibleRow",
    "parent_path_of",
    "is_direct_child_path",
]
