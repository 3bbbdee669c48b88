"""Interactive tree navigator: roving focus over visible rows of one layer.

The navigator owns the expanded-path sets, the focused row, and the
changes-only flag. It consumes layer trees and diffs from a loader, projects
them into visible rows, and interprets directional/activation commands
against that row list. It never renders and never fetches.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Sequence

from ..tree_model import (
    ChangeKind,
    DiffEntry,
    DiffIndex,
    Node,
    NodeKind,
    VisibleRow,
    build_diff_index,
    filter_changed_tree,
    find_row_index,
    flatten_tree,
    next_changed_row_index,
    next_directory_row_index,
    with_deleted_entries,
)
from .expansion import DEFAULT_EXPAND_DEPTH, ExpansionStore

logger = logging.getLogger(__name__)

TOGGLE_ALL_DEPTH = 3


class TreeNavigator:
    """Keyboard/pointer state machine over the flattened tree of one layer.

    Every command returns whether it changed focus, expansion or view state.
    Commands are no-ops while no rows are visible (loading, failed, or an
    empty layer).
    """

    def __init__(
        self,
        *,
        on_file_activated: Callable[[str], None] | None = None,
        on_expansion_changed: Callable[[frozenset[str]], None] | None = None,
        default_expand_depth: int = DEFAULT_EXPAND_DEPTH,
        toggle_all_depth: int = TOGGLE_ALL_DEPTH,
    ) -> None:
        """Create a navigator with no layer selected.

        Args:
            on_file_activated: Called with the row path each time ``activate``
                runs on a file or symlink row.
            on_expansion_changed: Called with the full expanded-path set each
                time it changes.
            default_expand_depth: Depth bound of the initial expansion of a
                layer with no cached or carried-over state.
            toggle_all_depth: Depth bound used by ``toggle_all`` when expanding.
        """
        self._on_file_activated = on_file_activated
        self._on_expansion_changed = on_expansion_changed
        self.toggle_all_depth = max(1, toggle_all_depth)
        self.expansion = ExpansionStore(default_depth=default_expand_depth)
        self._layer_id: Hashable | None = None
        self._tree: Node | None = None
        self._diff_entries: tuple[DiffEntry, ...] = ()
        self._diff_index: DiffIndex = {}
        self._filtered_tree: Node | None = None
        self._filtered_ready = False
        self._changes_only = False
        self._loading = False
        self._load_error: str | None = None
        self._rows: tuple[VisibleRow, ...] = ()
        self._focused: int | None = None

    # Layer lifecycle ---------------------------------------------------

    @property
    def layer_id(self) -> Hashable | None:
        return self._layer_id

    @property
    def tree(self) -> Node | None:
        return self._tree

    @property
    def diff_entries(self) -> tuple[DiffEntry, ...]:
        return self._diff_entries

    @property
    def diff_index(self) -> DiffIndex:
        return self._diff_index

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def load_error(self) -> str | None:
        return self._load_error

    @property
    def changes_only(self) -> bool:
        return self._changes_only

    def select_layer(self, layer_id: Hashable) -> bool:
        """Make ``layer_id`` current and wait for its tree.

        Rows are cleared until ``load_layer`` delivers data for this layer.
        Re-selecting the current layer is a no-op.
        """
        if layer_id == self._layer_id and (self._loading or self._tree is not None):
            return False
        self._layer_id = layer_id
        self._tree = None
        self._diff_entries = ()
        self._diff_index = {}
        self._invalidate_filtered()
        self._loading = True
        self._load_error = None
        self.expansion.select_layer(layer_id)
        self._rows = ()
        self._focused = None
        if self.expansion.has_state:
            # Cached or carried-over set is now the current one.
            self._notify_expansion()
        return True

    def load_layer(
        self,
        layer_id: Hashable,
        tree: Node | None,
        diff: Sequence[DiffEntry] | None = None,
    ) -> bool:
        """Install the tree/diff for ``layer_id``; stale layers are ignored.

        Focus resets to the first row since the tree identity changed.
        """
        if layer_id != self._layer_id:
            logger.debug("discarding stale tree for layer %r (selected %r)", layer_id, self._layer_id)
            return False
        self._tree = tree
        self._diff_entries = tuple(diff or ())
        self._diff_index = build_diff_index(self._diff_entries)
        self._invalidate_filtered()
        self._loading = False
        self._load_error = None
        if self.expansion.ensure_default(tree):
            self._notify_expansion()
        self._refresh(reset_focus=True)
        return True

    def fail_layer(self, layer_id: Hashable, message: str) -> bool:
        """Record a load failure for ``layer_id``; the view stays empty."""
        if layer_id != self._layer_id:
            logger.debug("discarding stale load error for layer %r: %s", layer_id, message)
            return False
        self._tree = None
        self._diff_entries = ()
        self._diff_index = {}
        self._invalidate_filtered()
        self._loading = False
        self._load_error = message
        self._refresh(reset_focus=True)
        return True

    # Read-only outputs -------------------------------------------------

    def visible_rows(self) -> tuple[VisibleRow, ...]:
        return self._rows

    def focused_index(self) -> int | None:
        return self._focused

    def focused_row(self) -> VisibleRow | None:
        if self._focused is None:
            return None
        return self._rows[self._focused]

    def is_expanded(self, path: str) -> bool:
        return self.expansion.is_expanded(path)

    def expanded_paths(self) -> frozenset[str]:
        return self.expansion.paths

    def change_kind(self, path: str) -> ChangeKind | None:
        return self._diff_index.get(path)

    def is_fetchable(self, path: str) -> bool:
        """Whether content exists for ``path`` in the current layer.

        Deleted entries (shown in the changes-only view) and anything that is
        not a regular file have nothing to fetch.
        """
        if self._diff_index.get(path) is ChangeKind.DELETED:
            return False
        idx = find_row_index(self._rows, path)
        if idx is None:
            return False
        return self._rows[idx].kind is NodeKind.FILE

    def display_tree(self) -> Node | None:
        """Tree currently projected into rows (full or changes-only)."""
        if not self._changes_only:
            return self._tree
        if not self._filtered_ready:
            grafted = with_deleted_entries(self._tree, self._diff_entries)
            self._filtered_tree = filter_changed_tree(grafted, self._diff_index)
            self._filtered_ready = True
        return self._filtered_tree

    # Commands ----------------------------------------------------------

    def move_down(self) -> bool:
        if self._focused is None or self._focused >= len(self._rows) - 1:
            return False
        self._focused += 1
        return True

    def move_up(self) -> bool:
        if self._focused is None or self._focused <= 0:
            return False
        self._focused -= 1
        return True

    def jump_first(self) -> bool:
        return self.focus_index(0)

    def jump_last(self) -> bool:
        return self.focus_index(len(self._rows) - 1)

    def focus_index(self, index: int) -> bool:
        """Move focus to ``index`` (clamped); no-op without rows."""
        if not self._rows:
            return False
        target = max(0, min(index, len(self._rows) - 1))
        if target == self._focused:
            return False
        self._focused = target
        return True

    def expand_or_descend(self) -> bool:
        """Open a collapsed directory, or step into an open one."""
        row = self.focused_row()
        if row is None or not row.is_dir:
            return False
        if not self.expansion.is_expanded(row.path):
            return self._mutate_expansion(lambda: self.expansion.expand(row.path))
        return self.move_down()

    def collapse_or_ascend(self) -> bool:
        """Close an open directory, otherwise focus the parent row."""
        row = self.focused_row()
        if row is None:
            return False
        if row.is_dir and self.expansion.is_expanded(row.path):
            return self._mutate_expansion(lambda: self.expansion.collapse(row.path))
        parent_idx = find_row_index(self._rows, row.parent_path)
        if parent_idx is None:
            return False
        return self.focus_index(parent_idx)

    def toggle_expand(self) -> bool:
        row = self.focused_row()
        if row is None or not row.is_dir:
            return False
        return self._mutate_expansion(lambda: self.expansion.toggle(row.path))

    def activate(self) -> bool:
        """Toggle a directory, or announce a file/symlink selection."""
        row = self.focused_row()
        if row is None:
            return False
        if row.is_dir:
            return self.toggle_expand()
        if self._on_file_activated is not None:
            self._on_file_activated(row.path)
        return True

    def toggle_all(self) -> bool:
        """Collapse everything when anything is open, else open to a bounded depth."""
        if self._focused is None:
            return False
        if len(self.expansion):
            return self._mutate_expansion(self.expansion.collapse_all)
        tree = self.display_tree()
        return self._mutate_expansion(lambda: self.expansion.expand_all(tree, self.toggle_all_depth))

    def click_row(self, index: int, activate: bool = False) -> bool:
        """Pointer selection: focus ``index`` and optionally activate it."""
        if not 0 <= index < len(self._rows):
            return False
        changed = self.focus_index(index)
        if activate:
            return self.activate() or changed
        return changed

    def next_change(self, direction: int = 1) -> bool:
        """Focus the next visible row carrying a change annotation."""
        if self._focused is None:
            return False
        target = next_changed_row_index(self._rows, self._focused, direction)
        if target is None:
            return False
        return self.focus_index(target)

    def next_directory(self, direction: int = 1) -> bool:
        if self._focused is None:
            return False
        target = next_directory_row_index(self._rows, self._focused, direction)
        if target is None:
            return False
        return self.focus_index(target)

    def set_changes_only(self, enabled: bool) -> bool:
        if bool(enabled) == self._changes_only:
            return False
        self._changes_only = bool(enabled)
        self._refresh()
        return True

    def toggle_changes_only(self) -> bool:
        return self.set_changes_only(not self._changes_only)

    # Internals ---------------------------------------------------------

    def _invalidate_filtered(self) -> None:
        self._filtered_tree = None
        self._filtered_ready = False

    def _mutate_expansion(self, mutate: Callable[[], object]) -> bool:
        before = self.expansion.paths
        mutate()
        if self.expansion.paths == before:
            return False
        self._notify_expansion()
        self._refresh()
        return True

    def _notify_expansion(self) -> None:
        if self._on_expansion_changed is not None:
            self._on_expansion_changed(self.expansion.paths)

    def _refresh(self, reset_focus: bool = False) -> None:
        """Recompute rows and re-anchor focus on the same path when possible."""
        previous = None if reset_focus else self.focused_row()
        previous_idx = self._focused
        self._rows = tuple(flatten_tree(self.display_tree(), self.expansion.paths, self._diff_index))
        if not self._rows:
            self._focused = None
            return
        if reset_focus or previous_idx is None:
            self._focused = 0
            return
        anchored = find_row_index(self._rows, previous.path) if previous is not None else None
        if anchored is not None:
            self._focused = anchored
            return
        self._focused = min(previous_idx, len(self._rows) - 1)
