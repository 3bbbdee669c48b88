"""JSON snapshot dumps of analyzed images.

A snapshot stores every layer's metadata, cumulative tree and diff so an
image can be inspected again without re-reading its layer tarballs::

    {"image": {"ref": ...}, "layers": [...], "trees": [...], "diffs": [...]}

Tree and diff entries use the same payload shapes as ``tree_model.build``.
"""

from __future__ import annotations

import json
from pathlib import Path

from ..tree_model import (
    DiffEntry,
    Node,
    diff_entries_from_payload,
    diff_entries_to_payload,
    empty_root,
    node_from_payload,
    node_to_payload,
)
from .source import ImageLoadError, LayerInfo, LayerSource, check_layer_index

SNAPSHOT_VERSION = 1


def _coerce_int(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


def _layer_info_from_payload(index: int, payload: object) -> LayerInfo:
    data = payload if isinstance(payload, dict) else {}
    diff_id = data.get("diffID")
    command = data.get("command")
    return LayerInfo(
        index=index,
        diff_id=diff_id if isinstance(diff_id, str) else "",
        size=_coerce_int(data.get("size")),
        command=command if isinstance(command, str) else "",
        empty=data.get("empty") is True,
    )


def _layer_info_to_payload(info: LayerInfo) -> dict[str, object]:
    return {
        "index": info.index,
        "diffID": info.diff_id,
        "size": info.size,
        "command": info.command,
        "empty": info.empty,
    }


class SnapshotSource:
    """``LayerSource`` reading trees and diffs from a decoded snapshot."""

    def __init__(self, payload: dict[str, object], image_ref: str = "") -> None:
        raw_layers = payload.get("layers")
        raw_trees = payload.get("trees")
        raw_diffs = payload.get("diffs")
        if not isinstance(raw_layers, list) or not isinstance(raw_trees, list):
            raise ImageLoadError("snapshot needs 'layers' and 'trees' lists")
        self._layers = [_layer_info_from_payload(index, item) for index, item in enumerate(raw_layers)]
        self._raw_trees = raw_trees
        self._raw_diffs = raw_diffs if isinstance(raw_diffs, list) else []
        self._trees: dict[int, Node] = {}
        image = payload.get("image")
        ref = image.get("ref") if isinstance(image, dict) else None
        self.image_ref = ref if isinstance(ref, str) and ref else image_ref

    @classmethod
    def load(cls, path: Path) -> SnapshotSource:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ImageLoadError(f"cannot read snapshot {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ImageLoadError(f"snapshot {path} is not a JSON object")
        return cls(payload, image_ref=path.stem)

    def close(self) -> None:
        pass

    def layer_count(self) -> int:
        return len(self._layers)

    def layer_info(self, index: int) -> LayerInfo:
        return self._layers[check_layer_index(self, index)]

    def get_tree(self, index: int) -> Node:
        index = check_layer_index(self, index)
        cached = self._trees.get(index)
        if cached is not None:
            return cached
        raw = self._raw_trees[index] if index < len(self._raw_trees) else None
        tree = node_from_payload(raw) if isinstance(raw, dict) else empty_root()
        self._trees[index] = tree
        return tree

    def get_diff(self, index: int) -> list[DiffEntry]:
        index = check_layer_index(self, index)
        raw = self._raw_diffs[index] if index < len(self._raw_diffs) else None
        return diff_entries_from_payload(raw if isinstance(raw, list) else None)


def build_snapshot(source: LayerSource) -> dict[str, object]:
    """Materialize every layer of ``source`` into a snapshot payload."""
    layers = [source.layer_info(index) for index in range(source.layer_count())]
    return {
        "version": SNAPSHOT_VERSION,
        "image": {"ref": source.image_ref, "layerCount": len(layers)},
        "layers": [_layer_info_to_payload(info) for info in layers],
        "trees": [node_to_payload(source.get_tree(info.index)) for info in layers],
        "diffs": [diff_entries_to_payload(source.get_diff(info.index)) for info in layers],
    }


def save_snapshot(source: LayerSource, path: Path) -> None:
    try:
        path.write_text(json.dumps(build_snapshot(source), indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ImageLoadError(f"cannot write snapshot {path}: {exc}") from exc
