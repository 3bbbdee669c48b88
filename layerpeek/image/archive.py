"""Image archives produced by ``docker save`` (tarball or extracted directory).

Layer metadata is read eagerly from ``manifest.json`` and the image config.
Cumulative layer trees are built lazily, in order, the first time a layer
at or beyond them is requested.
"""

from __future__ import annotations

import contextlib
import json
import logging
import tarfile
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import IO

from ..tree_model import DiffEntry, Node, empty_root
from .layers import _DraftNode, compute_diff, freeze_tree, merge_layer, read_layer_tree
from .source import ImageLoadError, LayerInfo, check_layer_index

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"


class _ArchiveReader:
    """Uniform member access over a tarball or an extracted directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._tar: tarfile.TarFile | None = None
        self.closed = False
        if path.is_file():
            try:
                self._tar = tarfile.open(path, mode="r:*")
            except (tarfile.TarError, OSError) as exc:
                raise ImageLoadError(f"cannot open image archive {path}: {exc}") from exc

    def has(self, name: str) -> bool:
        if self._tar is None:
            return (self.path / name).is_file()
        try:
            self._tar.getmember(name)
        except KeyError:
            return False
        return True

    @contextlib.contextmanager
    def open(self, name: str) -> Iterator[IO[bytes]]:
        self._check_open()
        if self._tar is None:
            try:
                handle = (self.path / name).open("rb")
            except OSError as exc:
                raise ImageLoadError(f"missing archive member {name}: {exc}") from exc
            with handle:
                yield handle
            return
        try:
            handle = self._tar.extractfile(name)
        except KeyError as exc:
            raise ImageLoadError(f"missing archive member {name}") from exc
        if handle is None:
            raise ImageLoadError(f"archive member {name} is not a regular file")
        with handle:
            yield handle

    def read_json(self, name: str) -> object:
        with self.open(name) as handle:
            try:
                return json.loads(handle.read().decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise ImageLoadError(f"malformed {name}: {exc}") from exc

    def member_size(self, name: str) -> int:
        if self._tar is None:
            try:
                return (self.path / name).stat().st_size
            except OSError:
                return 0
        try:
            return self._tar.getmember(name).size
        except KeyError:
            return 0

    def _check_open(self) -> None:
        if self.closed:
            raise ImageLoadError(f"image archive {self.path} is closed")

    def close(self) -> None:
        self.closed = True
        if self._tar is not None:
            self._tar.close()

    @contextlib.contextmanager
    def open_self(self) -> Iterator[IO[bytes]]:
        self._check_open()
        with self.path.open("rb") as handle:
            yield handle


def correlate_history(
    history: list[dict[str, object]],
    diff_ids: list[str],
    layer_sizes: list[int],
) -> list[LayerInfo]:
    """Pair history entries with content layers.

    History may list more entries than there are content layers because
    metadata-only steps are flagged ``empty_layer``. Without history, one
    entry per content layer is synthesized.
    """
    infos: list[LayerInfo] = []
    content_idx = 0
    for index, entry in enumerate(history):
        command = entry.get("created_by")
        command = command if isinstance(command, str) else ""
        if entry.get("empty_layer") is True or content_idx >= len(diff_ids):
            infos.append(LayerInfo(index=index, command=command, empty=True))
            continue
        infos.append(
            LayerInfo(
                index=index,
                diff_id=diff_ids[content_idx],
                size=layer_sizes[content_idx] if content_idx < len(layer_sizes) else 0,
                command=command,
            )
        )
        content_idx += 1

    if not history:
        for index, diff_id in enumerate(diff_ids):
            infos.append(
                LayerInfo(
                    index=index,
                    diff_id=diff_id,
                    size=layer_sizes[index] if index < len(layer_sizes) else 0,
                )
            )
    return infos


class ImageArchiveSource:
    """``LayerSource`` backed by a ``docker save`` archive or a rootfs tarball."""

    def __init__(
        self,
        reader: _ArchiveReader,
        image_ref: str,
        layers: list[LayerInfo],
        layer_members: list[str | None],
    ) -> None:
        self._reader = reader
        self.image_ref = image_ref
        self._layers = layers
        self._layer_members = layer_members
        self._lock = threading.Lock()
        self._last_draft: _DraftNode | None = None
        self._trees: list[Node] = []
        self._diffs: dict[int, list[DiffEntry]] = {}

    @classmethod
    def open(cls, path: Path) -> ImageArchiveSource:
        reader = _ArchiveReader(path)
        try:
            return cls._from_reader(reader, path)
        except BaseException:
            reader.close()
            raise

    @classmethod
    def _from_reader(cls, reader: _ArchiveReader, path: Path) -> ImageArchiveSource:
        if not reader.has(MANIFEST_NAME):
            if reader.path.is_dir():
                raise ImageLoadError(f"{path} has no {MANIFEST_NAME}")
            # A bare rootfs tarball is a one-layer image.
            layer = LayerInfo(index=0, size=path.stat().st_size, command=f"rootfs {path.name}")
            return cls(reader, image_ref=path.name, layers=[layer], layer_members=[""])

        manifest = reader.read_json(MANIFEST_NAME)
        if not isinstance(manifest, list) or not manifest or not isinstance(manifest[0], dict):
            raise ImageLoadError(f"{MANIFEST_NAME} does not describe an image")
        entry = manifest[0]
        raw_layers = entry.get("Layers")
        layer_names = [name for name in raw_layers if isinstance(name, str)] if isinstance(raw_layers, list) else []
        tags = entry.get("RepoTags")
        image_ref = tags[0] if isinstance(tags, list) and tags and isinstance(tags[0], str) else path.name

        history: list[dict[str, object]] = []
        diff_ids: list[str] = []
        config_name = entry.get("Config")
        if isinstance(config_name, str) and reader.has(config_name):
            config = reader.read_json(config_name)
            if isinstance(config, dict):
                raw_history = config.get("history")
                if isinstance(raw_history, list):
                    history = [item for item in raw_history if isinstance(item, dict)]
                rootfs = config.get("rootfs")
                raw_ids = rootfs.get("diff_ids") if isinstance(rootfs, dict) else None
                if isinstance(raw_ids, list):
                    diff_ids = [item for item in raw_ids if isinstance(item, str)]
        if not diff_ids:
            diff_ids = list(layer_names)

        sizes = [reader.member_size(name) for name in layer_names]
        layers = correlate_history(history, diff_ids, sizes)
        members: list[str | None] = []
        content_idx = 0
        for info in layers:
            if info.empty or content_idx >= len(layer_names):
                members.append(None)
                continue
            members.append(layer_names[content_idx])
            content_idx += 1
        logger.debug("opened %s: %d layers, %d with content", path, len(layers), content_idx)
        return cls(reader, image_ref=image_ref, layers=layers, layer_members=members)

    def close(self) -> None:
        """Release the underlying tarball handle; safe to call twice."""
        with self._lock:
            self._reader.close()

    def __enter__(self) -> ImageArchiveSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def layer_count(self) -> int:
        return len(self._layers)

    def layer_info(self, index: int) -> LayerInfo:
        return self._layers[check_layer_index(self, index)]

    def _read_member_tree(self, member: str) -> _DraftNode:
        if member == "":
            with self._reader.open_self() as handle:
                return read_layer_tree(handle)
        with self._reader.open(member) as handle:
            return read_layer_tree(handle)

    def _build_through(self, index: int) -> None:
        """Extend the cumulative tree list up to and including ``index``."""
        while len(self._trees) <= index:
            position = len(self._trees)
            member = self._layer_members[position]
            if member is None:
                # Metadata-only layers share the previous filesystem.
                self._trees.append(self._trees[-1] if self._trees else empty_root())
                continue
            self._last_draft = merge_layer(self._last_draft, self._read_member_tree(member))
            self._trees.append(freeze_tree(self._last_draft))

    def get_tree(self, index: int) -> Node:
        index = check_layer_index(self, index)
        with self._lock:
            self._build_through(index)
            return self._trees[index]

    def get_diff(self, index: int) -> list[DiffEntry]:
        index = check_layer_index(self, index)
        with self._lock:
            cached = self._diffs.get(index)
            if cached is not None:
                return list(cached)
            self._build_through(index)
            previous = self._trees[index - 1] if index > 0 else None
            if self._layer_members[index] is None:
                diff: list[DiffEntry] = []
            else:
                diff = compute_diff(previous, self._trees[index])
            self._diffs[index] = diff
            return list(diff)
