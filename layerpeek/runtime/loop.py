"""Main interactive event loop for the terminal UI.

Coordinates background layer results, rendering, and input dispatch.
Feature logic lives in ``ViewerApp``; this module only wires it to a tty.
"""

from __future__ import annotations

import logging
import shutil
import sys
from collections.abc import Callable
from dataclasses import dataclass

from ..input import is_quit_key, read_key
from ..render import render_frame
from .app import ViewerApp
from .terminal import TerminalController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling interactive loop behavior."""

    key_timeout_ms: int = 100


def run_main_loop(
    app: ViewerApp,
    terminal: TerminalController,
    stdin_fd: int,
    timing: RuntimeLoopTiming = RuntimeLoopTiming(),
    render: Callable = render_frame,
) -> None:
    """Run the interactive loop until a quit key arrives.

    Each iteration applies finished layer loads, redraws when something
    changed, then waits briefly for one key token.
    """
    dirty = True
    last_size: tuple[int, int] | None = None
    with terminal.raw_mode():
        while True:
            term = shutil.get_terminal_size((80, 24))
            size = (term.columns, term.lines)
            if size != last_size:
                last_size = size
                dirty = True
            if app.poll_layer_results():
                dirty = True
            if dirty:
                render(app.render_context(term.columns, term.lines))
                dirty = False

            key = read_key(stdin_fd, timing.key_timeout_ms)
            if not key:
                continue
            if is_quit_key(key):
                if app.show_help and key == "ESC":
                    app.toggle_help()
                    dirty = True
                    continue
                logger.debug("quit requested with %r", key)
                return
            if app.handle_key(key, term.lines):
                dirty = True


def run_viewer(app: ViewerApp, initial_layer: int) -> None:
    """Open ``initial_layer`` and hand the terminal to the event loop."""
    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())
    app.select_layer(initial_layer)
    run_main_loop(app, terminal, stdin_fd)
