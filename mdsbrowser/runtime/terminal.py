"""Terminal control helpers for the overlay session.

Owns raw-mode lifecycle and alternate-screen switching, plus the scoped
hand-off used while an external program owns the terminal.
"""

from __future__ import annotations

import contextlib
import os
import termios
import tty


class TerminalController:
    """Manage terminal mode transitions for the overlay."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        """Capture tty state and bind stdin/stdout file descriptors."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._tui_mode_enabled = False

    @property
    def tui_mode_enabled(self) -> bool:
        return self._tui_mode_enabled

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with the cursor hidden."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, b"\x1b[?1049h\x1b[?25l")
        self._tui_mode_enabled = True

    def disable_tui_mode(self) -> None:
        """Restore normal terminal state and the main screen buffer."""
        # Show cursor and leave the alternate screen before restoring cooked mode.
        os.write(self.stdout_fd, b"\x1b[?25h\x1b[?1049l")
        self._tui_mode_enabled = False
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()

    @contextlib.contextmanager
    def suspended(self):
        """Hand the terminal to a child process and always take it back."""
        self.disable_tui_mode()
        try:
            yield
        finally:
            self.enable_tui_mode()
