"""Decoding of layer tree and diff payloads into immutable model objects.

Payloads use the JSON shapes served by image inspectors:
``{"name", "path", "type", "size", "linkTarget", "children"}`` for tree nodes
and ``{"path", "type", "changeKind", "size"}`` for diff entries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from .types import ROOT_PATH, ChangeKind, DiffEntry, Node, NodeKind, is_direct_child_path

logger = logging.getLogger(__name__)


def _coerce_size(value: object) -> int:
    """Normalize JSON size values; booleans and non-integers become ``0``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


def _coerce_kind(value: object) -> NodeKind:
    try:
        return NodeKind(value)
    except ValueError:
        return NodeKind.FILE


def empty_root() -> Node:
    """Return the root directory of an empty layer."""
    return Node(name=ROOT_PATH, path=ROOT_PATH, kind=NodeKind.DIR)


def node_from_payload(payload: Mapping[str, object], parent_path: str | None = None) -> Node:
    """Build a ``Node`` tree from one decoded JSON tree payload.

    Children whose path is not directly below their parent, or that repeat a
    sibling path, are dropped instead of failing the whole tree.
    """
    path = payload.get("path")
    if not isinstance(path, str) or not path:
        path = ROOT_PATH if parent_path is None else parent_path.rstrip("/") + "/" + str(payload.get("name", ""))
    name = payload.get("name")
    if not isinstance(name, str) or not name:
        name = path.rsplit("/", 1)[-1] or ROOT_PATH
    kind = _coerce_kind(payload.get("type"))
    link_target = payload.get("linkTarget")

    children: list[Node] = []
    raw_children = payload.get("children")
    if kind is NodeKind.DIR and isinstance(raw_children, list):
        seen: set[str] = set()
        for raw_child in raw_children:
            if not isinstance(raw_child, Mapping):
                continue
            child = node_from_payload(raw_child, parent_path=path)
            if not is_direct_child_path(path, child.path) or child.path in seen:
                logger.debug("skipping malformed child %r under %r", child.path, path)
                continue
            seen.add(child.path)
            children.append(child)

    return Node(
        name=name,
        path=path,
        kind=kind,
        size=_coerce_size(payload.get("size")),
        link_target=link_target if isinstance(link_target, str) and link_target else None,
        children=tuple(children),
    )


def node_to_payload(node: Node) -> dict[str, object]:
    """Encode a ``Node`` tree back into its JSON payload shape."""
    payload: dict[str, object] = {
        "name": node.name,
        "path": node.path,
        "type": node.kind.value,
        "size": node.size,
    }
    if node.link_target:
        payload["linkTarget"] = node.link_target
    if node.children:
        payload["children"] = [node_to_payload(child) for child in node.children]
    return payload


def diff_entries_from_payload(payload: Iterable[object] | None) -> list[DiffEntry]:
    """Decode a diff list payload, dropping entries without a usable path/kind."""
    entries: list[DiffEntry] = []
    for raw in payload or ():
        if not isinstance(raw, Mapping):
            continue
        path = raw.get("path")
        if not isinstance(path, str) or not path:
            continue
        try:
            change_kind = ChangeKind(raw.get("changeKind"))
        except ValueError:
            continue
        entries.append(
            DiffEntry(
                path=path,
                kind=_coerce_kind(raw.get("type")),
                change_kind=change_kind,
                size=_coerce_size(raw.get("size")),
            )
        )
    return entries


def diff_entries_to_payload(entries: Iterable[DiffEntry]) -> list[dict[str, object]]:
    return [
        {
            "path": entry.path,
            "type": entry.kind.value,
            "changeKind": entry.change_kind.value,
            "size": entry.size,
        }
        for entry in entries
    ]
