"""Projection of a layer tree plus expansion state into visible rows."""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping

from .types import ROOT_PATH, ChangeKind, Node, VisibleRow, is_direct_child_path

logger = logging.getLogger(__name__)


def flatten_tree(
    root: Node | None,
    expanded: Collection[str],
    diff_index: Mapping[str, ChangeKind] | None = None,
) -> list[VisibleRow]:
    """Build the top-to-bottom row list for ``root`` honoring ``expanded``.

    The root itself is never emitted; its children sit at depth 0. A
    directory's children follow it only when its path is in ``expanded``.
    Sibling order is the tree's own order. Children whose path does not sit
    directly under their parent, or repeat an already emitted path, are
    skipped.
    """
    rows: list[VisibleRow] = []
    if root is None:
        return rows
    overlay = diff_index or {}
    emitted: set[str] = set()

    def walk(directory: Node, depth: int) -> None:
        """Depth-first traversal adding visible children for expanded directories."""
        parent_path = None if directory.path == ROOT_PATH else directory.path
        for child in directory.children:
            if not is_direct_child_path(directory.path, child.path) or child.path in emitted:
                logger.debug("skipping malformed row %r under %r", child.path, directory.path)
                continue
            emitted.add(child.path)
            rows.append(
                VisibleRow(
                    path=child.path,
                    depth=depth,
                    is_dir=child.is_dir,
                    parent_path=parent_path,
                    name=child.name,
                    kind=child.kind,
                    size=child.size,
                    link_target=child.link_target,
                    change_kind=overlay.get(child.path),
                )
            )
            if child.is_dir and child.path in expanded:
                walk(child, depth + 1)

    walk(root, 0)
    return rows


def directory_paths(root: Node | None, max_depth: int | None = None) -> set[str]:
    """Return directory paths whose depth is below ``max_depth``.

    Depth 0 is the root's own children, so ``max_depth=1`` yields only the
    top-level directories. ``None`` walks the whole tree.
    """
    paths: set[str] = set()
    if root is None:
        return paths
    stack: list[tuple[Node, int]] = [(child, 0) for child in root.children]
    while stack:
        node, depth = stack.pop()
        if not node.is_dir:
            continue
        if max_depth is not None and depth >= max_depth:
            continue
        paths.add(node.path)
        stack.extend((child, depth + 1) for child in node.children)
    return paths


def count_nodes(root: Node | None) -> int:
    """Return the number of entries below ``root`` (root excluded)."""
    if root is None:
        return 0
    total = 0
    stack = list(root.children)
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(node.children)
    return total
