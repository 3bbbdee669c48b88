"""Terminal control helpers for the viewer session.

Owns raw-mode lifecycle, alternate-screen switching, and mouse reporting.
The saved tty state is restored whenever TUI mode was even partially
entered, including when entering it fails.
"""

from __future__ import annotations

import contextlib
import os
import termios
import tty

# Alternate screen, hidden cursor, click + SGR extended mouse reporting, clear.
ENTER_TUI_SEQUENCE = b"\x1b[?1049h\x1b[?25l\x1b[?1000h\x1b[?1006h\x1b[2J"
EXIT_TUI_SEQUENCE = b"\x1b[?1000l\x1b[?1006l\x1b[?25h\x1b[?1049l"


class TerminalController:
    """Manage terminal mode transitions for the layer viewer."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        """Capture tty state and bind stdin/stdout file descriptors."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with mouse reporting enabled.

        If any step fails the terminal is put back the way it was before
        the error propagates.
        """
        if self._active:
            return
        self._active = True
        try:
            tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
            os.write(self.stdout_fd, ENTER_TUI_SEQUENCE)
        except BaseException:
            self.disable_tui_mode()
            raise

    def disable_tui_mode(self) -> None:
        """Restore the saved tty state and leave the alternate screen; idempotent."""
        if not self._active:
            return
        self._active = False
        try:
            os.write(self.stdout_fd, EXIT_TUI_SEQUENCE)
        finally:
            termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        self.enable_tui_mode()
        try:
            yield self
        finally:
            self.disable_tui_mode()
