"""Layer data sources consumed by the navigator's background loader."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..tree_model import DiffEntry, Node


class ImageLoadError(ValueError):
    """Raised when an image, layer, or snapshot cannot be read."""


_SHELL_PREFIX_RE = re.compile(r"^/bin/sh -c ")
_NOP_PREFIX_RE = re.compile(r"^#\(nop\)\s*")


def clean_command(command: str) -> str:
    """Strip the ``/bin/sh -c`` and ``#(nop)`` noise from a history command."""
    return _NOP_PREFIX_RE.sub("", _SHELL_PREFIX_RE.sub("", command)).strip()


@dataclass(frozen=True)
class LayerInfo:
    """History metadata for one layer, including metadata-only layers."""

    index: int
    diff_id: str = ""
    size: int = 0
    command: str = ""
    empty: bool = False

    @property
    def label(self) -> str:
        return clean_command(self.command) or self.diff_id or f"layer {self.index}"


class LayerSource(Protocol):
    """Provider of per-layer trees and diffs.

    ``get_tree`` and ``get_diff`` may be slow and are called from the loader
    thread; they raise ``ImageLoadError`` on failure.
    """

    image_ref: str

    def layer_count(self) -> int: ...

    def layer_info(self, index: int) -> LayerInfo: ...

    def get_tree(self, index: int) -> Node: ...

    def get_diff(self, index: int) -> list[DiffEntry]: ...

    def close(self) -> None: ...


def check_layer_index(source: LayerSource, index: object) -> int:
    """Validate a layer index against ``source`` and return it as ``int``."""
    if isinstance(index, bool) or not isinstance(index, int):
        raise ImageLoadError(f"invalid layer id: {index!r}")
    count = source.layer_count()
    if not 0 <= index < count:
        raise ImageLoadError(f"layer index {index} out of range [0, {count})")
    return index


def open_source(path: Path) -> LayerSource:
    """Open ``path`` as a JSON snapshot or an image archive.

    ``.json`` files are snapshots; anything else is treated as a
    ``docker save`` archive (tarball or extracted directory) or a single
    rootfs tarball.
    """
    from .archive import ImageArchiveSource
    from .snapshot import SnapshotSource

    if not path.exists():
        raise ImageLoadError(f"Path not found: {path}")
    if path.is_file() and path.suffix.lower() == ".json":
        return SnapshotSource.load(path)
    return ImageArchiveSource.open(path)
