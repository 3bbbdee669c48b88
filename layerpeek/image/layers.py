"""Layer tarball reading, whiteout-aware merging, and tree diffing.

A layer tarball only lists what the layer wrote. The filesystem visible at
layer N is the merge of layers 0..N, where ``.wh.NAME`` entries delete
``NAME`` and ``.wh..wh..opq`` empties the directory it sits in.
"""

from __future__ import annotations

import logging
import posixpath
import tarfile
from dataclasses import dataclass, field
from typing import IO

from ..tree_model import ROOT_PATH, ChangeKind, DiffEntry, Node, NodeKind, parent_path_of
from .source import ImageLoadError

logger = logging.getLogger(__name__)

WHITEOUT_PREFIX = ".wh."
OPAQUE_WHITEOUT = ".wh..wh..opq"


@dataclass
class _DraftNode:
    """Mutable node used while a tree is assembled."""

    name: str
    path: str
    kind: NodeKind
    size: int = 0
    link_target: str | None = None
    children: dict[str, "_DraftNode"] = field(default_factory=dict)

    def copy(self) -> _DraftNode:
        return _DraftNode(
            name=self.name,
            path=self.path,
            kind=self.kind,
            size=self.size,
            link_target=self.link_target,
            children={name: child.copy() for name, child in self.children.items()},
        )


def _draft_root() -> _DraftNode:
    return _DraftNode(name=ROOT_PATH, path=ROOT_PATH, kind=NodeKind.DIR)


def clean_member_path(name: str) -> str:
    """Normalize a tar member name into an absolute ``/``-separated path."""
    return posixpath.normpath("/" + name.lstrip("/"))


def _member_kind(member: tarfile.TarInfo) -> NodeKind | None:
    if member.isdir():
        return NodeKind.DIR
    if member.issym():
        return NodeKind.SYMLINK
    if member.isreg():
        return NodeKind.FILE
    return None


def _ensure_parents(lookup: dict[str, _DraftNode], path: str) -> _DraftNode:
    """Return the parent draft of ``path``, creating missing directories."""
    parent_path = parent_path_of(path)
    parent = lookup.get(parent_path)
    if parent is not None:
        return parent
    grandparent = _ensure_parents(lookup, parent_path)
    parent = _DraftNode(name=posixpath.basename(parent_path), path=parent_path, kind=NodeKind.DIR)
    grandparent.children[parent.name] = parent
    lookup[parent_path] = parent
    return parent


def read_layer_tree(fileobj: IO[bytes]) -> _DraftNode:
    """Read one (optionally compressed) layer tarball into a draft tree.

    Hard links, devices and other special members are skipped. A later
    member for the same path replaces the earlier one; directories keep the
    children they already collected.
    """
    root = _draft_root()
    lookup: dict[str, _DraftNode] = {ROOT_PATH: root}
    try:
        with tarfile.open(fileobj=fileobj, mode="r:*") as layer:
            for member in layer:
                path = clean_member_path(member.name)
                if path == ROOT_PATH:
                    continue
                kind = _member_kind(member)
                if kind is None:
                    continue
                parent = _ensure_parents(lookup, path)
                if parent.kind is not NodeKind.DIR:
                    logger.debug("skipping %r: parent is not a directory", path)
                    continue
                node = _DraftNode(
                    name=posixpath.basename(path),
                    path=path,
                    kind=kind,
                    size=member.size if kind is NodeKind.FILE else 0,
                    link_target=(member.linkname or None) if kind is NodeKind.SYMLINK else None,
                )
                existing = lookup.get(path)
                if existing is not None and existing.kind is NodeKind.DIR and kind is NodeKind.DIR:
                    node.children = existing.children
                parent.children[node.name] = node
                lookup[path] = node
    except tarfile.TarError as exc:
        raise ImageLoadError(f"read layer tar: {exc}") from exc
    return root


def apply_overlay(base: _DraftNode, overlay: _DraftNode) -> None:
    """Apply ``overlay`` onto ``base`` in place, honoring whiteouts."""
    if OPAQUE_WHITEOUT in overlay.children:
        base.children.clear()

    for name, child in overlay.children.items():
        if name == OPAQUE_WHITEOUT:
            continue
        if name.startswith(WHITEOUT_PREFIX):
            base.children.pop(name[len(WHITEOUT_PREFIX):], None)
            continue
        existing = base.children.get(name)
        if existing is not None and existing.kind is NodeKind.DIR and child.kind is NodeKind.DIR:
            apply_overlay(existing, child)
            continue
        replacement = child.copy()
        base.children[name] = replacement
        _strip_whiteouts(replacement)


def _strip_whiteouts(node: _DraftNode) -> None:
    """Drop whiteout markers left inside a subtree copied without a base."""
    for name in [name for name in node.children if name.startswith(WHITEOUT_PREFIX)]:
        del node.children[name]
    for child in node.children.values():
        _strip_whiteouts(child)


def merge_layer(base: _DraftNode | None, overlay: _DraftNode) -> _DraftNode:
    """Return a new draft of ``overlay`` applied on a copy of ``base``."""
    merged = base.copy() if base is not None else _draft_root()
    apply_overlay(merged, overlay)
    return merged


def freeze_tree(draft: _DraftNode) -> Node:
    """Convert a draft into an immutable ``Node`` with directories listed first."""
    children = sorted(
        draft.children.values(),
        key=lambda child: (child.kind is not NodeKind.DIR, child.name),
    )
    return Node(
        name=draft.name,
        path=draft.path,
        kind=draft.kind,
        size=draft.size,
        link_target=draft.link_target,
        children=tuple(freeze_tree(child) for child in children),
    )


def _collect_all(node: Node, change_kind: ChangeKind, out: list[DiffEntry]) -> None:
    if node.path != ROOT_PATH:
        out.append(DiffEntry(path=node.path, kind=node.kind, change_kind=change_kind, size=node.size))
    for child in node.children:
        _collect_all(child, change_kind, out)


def _diff_walk(prev: Node, curr: Node, out: list[DiffEntry]) -> None:
    prev_by_name = {child.name: child for child in prev.children}
    curr_names = {child.name for child in curr.children}

    for child in curr.children:
        before = prev_by_name.get(child.name)
        if before is None:
            _collect_all(child, ChangeKind.ADDED, out)
            continue
        if child.kind != before.kind or child.size != before.size or child.link_target != before.link_target:
            out.append(DiffEntry(path=child.path, kind=child.kind, change_kind=ChangeKind.MODIFIED, size=child.size))
        if child.is_dir and before.is_dir:
            _diff_walk(before, child, out)

    for child in prev.children:
        if child.name not in curr_names:
            _collect_all(child, ChangeKind.DELETED, out)


def compute_diff(prev: Node | None, curr: Node | None) -> list[DiffEntry]:
    """Report entries added, modified, or deleted going from ``prev`` to ``curr``.

    Modification compares type, size and link target only.
    """
    out: list[DiffEntry] = []
    if prev is None and curr is None:
        return out
    if prev is None:
        _collect_all(curr, ChangeKind.ADDED, out)
        return out
    if curr is None:
        _collect_all(prev, ChangeKind.DELETED, out)
        return out
    _diff_walk(prev, curr, out)
    return out
