"""Layer tree model: snapshot datatypes, diff overlay, filtering, and flattening.

This package contains non-UI tree primitives:
- immutable node/diff/row datatypes
- JSON payload decoding
- the path -> change-kind diff index
- the changes-only projection
- flattening of (tree, expanded paths) into visible rows
- row index scans and ANSI row formatting
"""

from __future__ import annotations

from .build import (
    diff_entries_from_payload,
    diff_entries_to_payload,
    empty_root,
    node_from_payload,
    node_to_payload,
)
from .diff_index import DiffIndex, build_diff_index, count_changes
from .filtering import filter_changed_tree, with_deleted_entries
from .flatten import count_nodes, directory_paths, flatten_tree
from .navigation import find_row_index, next_changed_row_index, next_directory_row_index
from .rendering import change_badge, format_bytes, format_tree_row
from .types import (
    ROOT_PATH,
    ChangeKind,
    DiffEntry,
    Node,
    NodeKind,
    VisibleRow,
    is_direct_child_path,
    parent_path_of,
)

__all__ = [
    "ROOT_PATH",
    "ChangeKind",
    "DiffEntry",
    "Node",
    "NodeKind",
    "VisibleRow",
    "is_direct_child_path",
    "parent_path_of",
    "node_from_payload",
    "node_to_payload",
    "diff_entries_from_payload",
    "diff_entries_to_payload",
    "empty_root",
    "DiffIndex",
    "build_diff_index",
    "count_changes",
    "filter_changed_tree",
    "with_deleted_entries",
    "flatten_tree",
    "directory_paths",
    "count_nodes",
    "find_row_index",
    "next_changed_row_index",
    "next_directory_row_index",
    "format_bytes",
    "change_badge",
    "format_tree_row",
]
