"""Image loading: layer tarballs, cumulative trees, diffs, and snapshots."""

from __future__ import annotations

from .archive import ImageArchiveSource, correlate_history
from .layers import compute_diff, freeze_tree, merge_layer, read_layer_tree
from .snapshot import SnapshotSource, build_snapshot, save_snapshot
from .source import ImageLoadError, LayerInfo, LayerSource, clean_command, open_source

__all__ = [
    "ImageArchiveSource",
    "ImageLoadError",
    "LayerInfo",
    "LayerSource",
    "SnapshotSource",
    "build_snapshot",
    "clean_command",
    "compute_diff",
    "correlate_history",
    "freeze_tree",
    "merge_layer",
    "open_source",
    "read_layer_tree",
    "save_snapshot",
]
