"""Background loader for per-layer tree and diff payloads."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Hashable
from dataclasses import dataclass
from queue import Empty, Queue

from ..image.source import ImageLoadError, LayerSource
from ..tree_model import DiffEntry, Node
from .navigator import TreeNavigator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerLoadRequest:
    """One layer load job."""

    request_id: int
    layer_id: Hashable


@dataclass(frozen=True)
class LayerLoadResult:
    """Completed load from the background worker.

    ``error`` is set instead of ``tree``/``diff`` when the source failed.
    """

    request: LayerLoadRequest
    tree: Node | None = None
    diff: tuple[DiffEntry, ...] = ()
    error: str | None = None


class LayerLoadScheduler:
    """Single-threaded latest-request-wins layer loader.

    Requests scheduled while the worker is busy replace any pending request;
    results still carry their layer id so consumers can drop stale ones.
    """

    def __init__(self, source: LayerSource) -> None:
        self._source = source
        self._lock = threading.Lock()
        self._pending: LayerLoadRequest | None = None
        self._running = False
        self._next_request_id = 1
        self._results: Queue[LayerLoadResult] = Queue()

    def _load(self, request: LayerLoadRequest) -> LayerLoadResult:
        started = time.monotonic()
        try:
            tree = self._source.get_tree(request.layer_id)
            diff = tuple(self._source.get_diff(request.layer_id))
        except (ImageLoadError, OSError) as exc:
            logger.warning("loading layer %r failed: %s", request.layer_id, exc)
            return LayerLoadResult(request=request, error=str(exc))
        logger.debug("loaded layer %r in %.3fs", request.layer_id, time.monotonic() - started)
        return LayerLoadResult(request=request, tree=tree, diff=diff)

    def _worker(self) -> None:
        while True:
            with self._lock:
                request = self._pending
                self._pending = None
                if request is None:
                    self._running = False
                    return

            self._results.put(self._load(request))

    def schedule(self, layer_id: Hashable) -> int:
        """Queue/replace pending load work and return request id."""
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            self._pending = LayerLoadRequest(request_id=request_id, layer_id=layer_id)
            if self._running:
                return request_id
            self._running = True

        worker = threading.Thread(
            target=self._worker,
            name="layerpeek-layer-loader",
            daemon=True,
        )
        worker.start()
        return request_id

    def load_now(self, layer_id: Hashable) -> LayerLoadResult:
        """Load ``layer_id`` synchronously on the calling thread."""
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
        return self._load(LayerLoadRequest(request_id=request_id, layer_id=layer_id))

    def drain_results(self) -> list[LayerLoadResult]:
        """Drain all completed load results."""
        out: list[LayerLoadResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out


def apply_load_result(navigator: TreeNavigator, result: LayerLoadResult) -> bool:
    """Hand one result to ``navigator``; returns whether it was current."""
    layer_id = result.request.layer_id
    if result.error is not None:
        return navigator.fail_layer(layer_id, result.error)
    return navigator.load_layer(layer_id, result.tree, result.diff)


__all__ = [
    "LayerLoadRequest",
    "LayerLoadResult",
    "LayerLoadScheduler",
    "apply_load_result",
]
