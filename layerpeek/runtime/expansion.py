"""Per-layer expanded-directory sets with cross-layer carry-over.

Each layer keeps its own set of open directory paths. A layer visited for
the first time starts from a copy of the most recently produced set, or
from a bounded default once its tree is known.
"""

from __future__ import annotations

from collections.abc import Hashable

from ..tree_model import Node, directory_paths

DEFAULT_EXPAND_DEPTH = 1


class ExpansionStore:
    """Expanded-path sets keyed by layer id, owned by one navigator session."""

    def __init__(self, default_depth: int = DEFAULT_EXPAND_DEPTH) -> None:
        self.default_depth = max(1, default_depth)
        self._by_layer: dict[Hashable, set[str]] = {}
        self._last_produced: frozenset[str] | None = None
        self._layer: Hashable | None = None
        self._current: set[str] | None = None

    @property
    def layer(self) -> Hashable | None:
        return self._layer

    @property
    def has_state(self) -> bool:
        """Whether the current layer already owns an expansion set."""
        return self._current is not None

    @property
    def paths(self) -> frozenset[str]:
        """Immutable snapshot of the current layer's expanded paths."""
        return frozenset(self._current or ())

    def __len__(self) -> int:
        return len(self._current or ())

    def select_layer(self, layer_id: Hashable) -> None:
        """Switch scope to ``layer_id``.

        Reuses the cached set for that layer, else clones the most recently
        produced set. When neither exists the layer stays without state
        until ``ensure_default`` sees its tree.
        """
        self._layer = layer_id
        cached = self._by_layer.get(layer_id)
        if cached is not None:
            self._current = cached
            return
        if self._last_produced is not None:
            self._current = set(self._last_produced)
            self._by_layer[layer_id] = self._current
            return
        self._current = None

    def ensure_default(self, root: Node | None) -> bool:
        """Create the bounded default set for a layer without state.

        Returns whether a new set was created.
        """
        if self._current is not None:
            return False
        self._replace(directory_paths(root, self.default_depth))
        return True

    def is_expanded(self, path: str) -> bool:
        return self._current is not None and path in self._current

    def expand(self, path: str) -> bool:
        if self.is_expanded(path):
            return False
        self._writable().add(path)
        self._record()
        return True

    def collapse(self, path: str) -> bool:
        if not self.is_expanded(path):
            return False
        self._writable().discard(path)
        self._record()
        return True

    def toggle(self, path: str) -> None:
        """Flip membership of ``path``; unknown paths are simply inert."""
        if self.is_expanded(path):
            self.collapse(path)
        else:
            self.expand(path)

    def expand_all(self, root: Node | None, max_depth: int | None) -> None:
        """Open every directory of ``root`` shallower than ``max_depth``."""
        self._replace(directory_paths(root, max_depth))

    def collapse_all(self) -> None:
        self._replace(set())

    def _writable(self) -> set[str]:
        if self._current is None:
            self._current = set()
            self._by_layer[self._layer] = self._current
        return self._current

    def _replace(self, paths: set[str]) -> None:
        current = self._writable()
        current.clear()
        current.update(paths)
        self._record()

    def _record(self) -> None:
        self._last_produced = frozenset(self._current or ())
