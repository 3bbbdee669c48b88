"""Runtime state and orchestration for the interactive viewer.

Navigator and expansion state are importable directly; the terminal-bound
entry points load lazily to keep package imports free of tty setup.
"""

from __future__ import annotations

from .expansion import DEFAULT_EXPAND_DEPTH, ExpansionStore
from .navigator import TOGGLE_ALL_DEPTH, TreeNavigator


def run_viewer(*args, **kwargs):
    """Lazily import the viewer entrypoint to avoid package-import cycles."""
    from .loop import run_viewer as _run_viewer

    return _run_viewer(*args, **kwargs)


__all__ = [
    "DEFAULT_EXPAND_DEPTH",
    "ExpansionStore",
    "TOGGLE_ALL_DEPTH",
    "TreeNavigator",
    "run_viewer",
]
