"""Viewer session wiring: source, loader, navigator, keys, and screen state.

``ViewerApp`` is the single owner of one interactive session. It routes
key tokens to the navigator, drives layer selection through the background
loader, and builds render contexts. The terminal loop only calls into it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..image.source import LayerSource
from ..input import TreeKeyContext, build_tree_key_registry
from ..render import RenderContext, row_index_at, tree_view_rows, tree_viewport_start
from ..tree_model import count_changes, format_bytes
from ..ui_theme import UITheme, available_theme_names, resolve_theme
from . import config
from .layer_loader import LayerLoadScheduler, apply_load_result
from .navigator import TreeNavigator

logger = logging.getLogger(__name__)

DOUBLE_CLICK_SECONDS = 0.35
MARKER_COLUMNS = 2


class ViewerApp:
    """Interactive session state for one opened image."""

    def __init__(
        self,
        source: LayerSource,
        *,
        settings: config.ViewerSettings | None = None,
        theme_name: str | None = None,
        no_color: bool = False,
        changes_only: bool = False,
        scheduler: LayerLoadScheduler | None = None,
        monotonic: Callable[[], float] = time.monotonic,
        persist_preferences: bool = True,
    ) -> None:
        settings = settings or config.ViewerSettings()
        self.source = source
        self.scheduler = scheduler or LayerLoadScheduler(source)
        self.navigator = TreeNavigator(
            on_file_activated=self._on_file_activated,
            on_expansion_changed=self._on_expansion_changed,
            default_expand_depth=settings.default_expand_depth,
            toggle_all_depth=settings.toggle_all_depth,
        )
        self.navigator.set_changes_only(changes_only)
        self.no_color = no_color
        self.theme: UITheme = resolve_theme(theme_name or settings.theme, no_color=no_color)
        self.show_size_labels = settings.show_size_labels
        self.persist_preferences = persist_preferences
        self.show_help = False
        self.message = ""
        self.tree_start = 0
        self.activated_paths: list[str] = []
        self._monotonic = monotonic
        self._last_click_idx = -1
        self._last_click_time = 0.0
        self.keys = build_tree_key_registry(
            TreeKeyContext(
                navigator=self.navigator,
                select_layer_offset=self.select_layer_offset,
                toggle_help=self.toggle_help,
                cycle_theme=self.cycle_theme,
                toggle_size_labels=self.toggle_size_labels,
            )
        )

    @property
    def layer_index(self) -> int | None:
        layer_id = self.navigator.layer_id
        return layer_id if isinstance(layer_id, int) else None

    # Layers -------------------------------------------------------------

    def select_layer(self, index: int, background: bool = True) -> bool:
        """Select layer ``index`` and start loading it."""
        count = self.source.layer_count()
        if count <= 0:
            return False
        index = max(0, min(index, count - 1))
        if not self.navigator.select_layer(index):
            return False
        self.tree_start = 0
        self.message = ""
        logger.debug("selected layer %d of %d", index, count)
        if background:
            self.scheduler.schedule(index)
        else:
            apply_load_result(self.navigator, self.scheduler.load_now(index))
        return True

    def select_layer_offset(self, offset: int) -> bool:
        current = self.layer_index
        if current is None:
            return self.select_layer(0)
        return self.select_layer(current + offset)

    def poll_layer_results(self) -> bool:
        """Apply finished loads; returns whether any result was current."""
        applied = False
        for result in self.scheduler.drain_results():
            if apply_load_result(self.navigator, result):
                self.tree_start = 0
                applied = True
        return applied

    # Actions ------------------------------------------------------------

    def _on_file_activated(self, path: str) -> None:
        self.activated_paths.append(path)
        if not self.navigator.is_fetchable(path):
            self.message = f"{path}: nothing to fetch"
            return
        row = self.navigator.focused_row()
        size = f" ({format_bytes(row.size)})" if row is not None and row.path == path else ""
        self.message = f"selected {path}{size}"

    def _on_expansion_changed(self, paths: frozenset[str]) -> None:
        logger.debug("layer %r expansion now %d paths", self.navigator.layer_id, len(paths))

    def toggle_help(self) -> bool:
        self.show_help = not self.show_help
        return True

    def cycle_theme(self) -> bool:
        if self.no_color:
            return False
        names = [name for name in available_theme_names() if name != "plain"]
        current = names.index(self.theme.name) if self.theme.name in names else -1
        self.theme = resolve_theme(names[(current + 1) % len(names)])
        if self.persist_preferences:
            config.save_theme_name(self.theme.name)
        return True

    def toggle_size_labels(self) -> bool:
        self.show_size_labels = not self.show_size_labels
        if self.persist_preferences:
            config.save_show_size_labels(self.show_size_labels)
        return True

    # Input --------------------------------------------------------------

    def handle_key(self, key: str, height: int) -> bool:
        """Handle one key token; returns whether the screen needs a redraw."""
        if key.startswith("MOUSE_"):
            return self.handle_mouse(key, height)
        if self.message:
            self.message = ""
        handled = self.keys.dispatch(key)
        return handled is not None

    def handle_mouse(self, key: str, height: int) -> bool:
        """Focus/toggle rows on left clicks and scroll on wheel events."""
        kind, _sep, coords = key.partition(":")
        try:
            col_s, row_s = coords.split(":")
            col = int(col_s)
            screen_row = int(row_s)
        except ValueError:
            return False
        nav = self.navigator
        if kind == "MOUSE_WHEEL_UP":
            return nav.move_up()
        if kind == "MOUSE_WHEEL_DOWN":
            return nav.move_down()
        if kind != "MOUSE_LEFT_DOWN":
            return False

        rows = nav.visible_rows()
        index = row_index_at(screen_row, self.tree_start, height, len(rows))
        if index is None:
            return False
        row = rows[index]
        marker_col = 1 + row.depth * 2
        on_marker = row.is_dir and marker_col <= col < marker_col + MARKER_COLUMNS
        now = self._monotonic()
        double_click = index == self._last_click_idx and (now - self._last_click_time) <= DOUBLE_CLICK_SECONDS
        if on_marker or double_click:
            self._last_click_idx = -1
        else:
            self._last_click_idx = index
            self._last_click_time = now
        return nav.click_row(index, activate=on_marker or double_click)

    # Rendering ----------------------------------------------------------

    def render_context(self, width: int, height: int) -> RenderContext:
        nav = self.navigator
        rows = nav.visible_rows()
        self.tree_start = tree_viewport_start(self.tree_start, nav.focused_index(), len(rows), tree_view_rows(height))
        layer_index = self.layer_index
        layer_label = self.source.layer_info(layer_index).label if layer_index is not None else ""
        return RenderContext(
            rows=rows,
            focused_index=nav.focused_index(),
            tree_start=self.tree_start,
            expanded=nav.expanded_paths(),
            width=width,
            height=height,
            image_ref=self.source.image_ref,
            layer_index=layer_index,
            layer_count=self.source.layer_count(),
            layer_label=layer_label,
            changes_only=nav.changes_only,
            loading=nav.loading,
            load_error=nav.load_error,
            change_counts=count_changes(nav.diff_index) if nav.tree is not None else {},
            message=self.message,
            show_help=self.show_help,
            help_entries=self.keys.help_entries(),
            show_size_labels=self.show_size_labels,
            theme=self.theme,
        )
