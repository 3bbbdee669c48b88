"""Tree-pane key bindings.

Navigation keys map straight onto ``TreeNavigator`` commands; the rest are
runtime actions injected through ``TreeKeyContext``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..runtime.navigator import TreeNavigator
from .key_registry import KeyBinding, KeyRegistry


@dataclass(frozen=True)
class TreeKeyContext:
    """Navigator plus the runtime operations that keys can trigger."""

    navigator: TreeNavigator
    select_layer_offset: Callable[[int], bool]
    toggle_help: Callable[[], bool]
    cycle_theme: Callable[[], bool]
    toggle_size_labels: Callable[[], bool]


def build_tree_key_registry(context: TreeKeyContext) -> KeyRegistry:
    """Create the dispatch table for the tree pane."""
    nav = context.navigator
    return KeyRegistry().register(
        KeyBinding(("j", "DOWN"), nav.move_down, "down"),
        KeyBinding(("k", "UP"), nav.move_up, "up"),
        KeyBinding(("l", "RIGHT"), nav.expand_or_descend, "open/child"),
        KeyBinding(("h", "LEFT"), nav.collapse_or_ascend, "close/parent"),
        KeyBinding((" ",), nav.toggle_expand),
        KeyBinding(("ENTER",), nav.activate, "select"),
        KeyBinding(("g", "HOME"), nav.jump_first),
        KeyBinding(("G", "END"), nav.jump_last),
        KeyBinding(("a",), nav.toggle_all, "expand/collapse all"),
        KeyBinding(("c",), nav.toggle_changes_only, "changes only"),
        KeyBinding(("n",), lambda: nav.next_change(1), "next change"),
        KeyBinding(("N", "p"), lambda: nav.next_change(-1)),
        KeyBinding(("CTRL_D",), lambda: nav.next_directory(1)),
        KeyBinding(("CTRL_U",), lambda: nav.next_directory(-1)),
        KeyBinding(("]",), lambda: context.select_layer_offset(1), "next layer"),
        KeyBinding(("[",), lambda: context.select_layer_offset(-1), "prev layer"),
        KeyBinding(("s",), context.toggle_size_labels),
        KeyBinding(("t",), context.cycle_theme),
        KeyBinding(("?",), context.toggle_help, "help"),
    )


def is_quit_key(key: str) -> bool:
    return key in {"q", "Q", "\x03", "ESC"}
