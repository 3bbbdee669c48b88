"""Keyboard input: raw key decoding and tree-pane key dispatch."""

from __future__ import annotations

from .key_registry import KeyBinding, KeyRegistry
from .key_tree import TreeKeyContext, build_tree_key_registry, is_quit_key
from .keys import decode_sgr_mouse, read_key

__all__ = [
    "KeyBinding",
    "KeyRegistry",
    "TreeKeyContext",
    "build_tree_key_registry",
    "decode_sgr_mouse",
    "is_quit_key",
    "read_key",
]
