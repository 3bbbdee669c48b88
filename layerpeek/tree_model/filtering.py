"""Changes-only projection of a layer tree.

Keeps changed entries plus every ancestor directory needed to reach them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .types import ROOT_PATH, ChangeKind, DiffEntry, Node, NodeKind, parent_path_of


def filter_changed_tree(root: Node | None, diff_index: Mapping[str, ChangeKind]) -> Node | None:
    """Return a pruned copy of ``root`` restricted to changed entries.

    Leaves survive when their path is in ``diff_index``. Directories survive
    when a filtered child remains or when the directory itself changed.
    Surviving children keep their original order. Returns ``None`` when
    nothing in the tree changed.
    """
    if root is None or not diff_index:
        return None

    def prune(node: Node) -> Node | None:
        """Post-order reduction of one subtree."""
        if not node.is_dir:
            return node if node.path in diff_index else None

        kept = tuple(child for child in (prune(item) for item in node.children) if child is not None)
        if not kept and node.path not in diff_index:
            return None
        if kept == node.children:
            return node
        return Node(
            name=node.name,
            path=node.path,
            kind=node.kind,
            size=node.size,
            link_target=node.link_target,
            children=kept,
        )

    filtered_children = tuple(child for child in (prune(item) for item in root.children) if child is not None)
    if not filtered_children:
        return None
    return Node(
        name=root.name,
        path=root.path,
        kind=root.kind,
        size=root.size,
        link_target=root.link_target,
        children=filtered_children,
    )


def with_deleted_entries(root: Node | None, entries: Iterable[DiffEntry]) -> Node | None:
    """Graft ``deleted`` diff entries back into ``root`` as placeholder nodes.

    A layer's own tree no longer contains what it deleted, so the
    changes-only view re-inserts those paths (and any missing ancestor
    directories) after the existing children of their parent. Paths whose
    parent exists as a non-directory are skipped.
    """
    if root is None:
        return None
    deleted = [entry for entry in entries if entry.change_kind is ChangeKind.DELETED and entry.path != ROOT_PATH]
    if not deleted:
        return root

    existing: set[str] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        existing.add(node.path)
        stack.extend(node.children)

    placeholders: dict[str, DiffEntry] = {}
    extras_by_parent: dict[str, list[str]] = {}
    for entry in deleted:
        if entry.path in existing or entry.path in placeholders:
            continue
        missing_ancestors: list[str] = []
        parent = parent_path_of(entry.path)
        while parent != ROOT_PATH and parent not in existing and parent not in placeholders:
            missing_ancestors.append(parent)
            parent = parent_path_of(parent)
        for ancestor in reversed(missing_ancestors):
            placeholders[ancestor] = DiffEntry(ancestor, NodeKind.DIR, ChangeKind.DELETED)
            extras_by_parent.setdefault(parent_path_of(ancestor), []).append(ancestor)
        placeholders[entry.path] = entry
        extras_by_parent.setdefault(parent_path_of(entry.path), []).append(entry.path)

    touched: set[str] = set()
    for parent in extras_by_parent:
        while parent not in touched:
            touched.add(parent)
            if parent == ROOT_PATH:
                break
            parent = parent_path_of(parent)

    def placeholder_node(path: str) -> Node:
        entry = placeholders[path]
        return graft(
            Node(
                name=path.rsplit("/", 1)[-1],
                path=path,
                kind=entry.kind,
                size=entry.size,
            )
        )

    def graft(node: Node) -> Node:
        if not node.is_dir or node.path not in touched:
            return node
        children = tuple(graft(child) for child in node.children)
        children += tuple(placeholder_node(path) for path in extras_by_parent.get(node.path, ()))
        return Node(
            name=node.name,
            path=node.path,
            kind=node.kind,
            size=node.size,
            link_target=node.link_target,
            children=children,
        )

    return graft(root)
