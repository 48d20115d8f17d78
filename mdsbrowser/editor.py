"""Editor resolution and launch for external document edits.

Resolution order: configured editor type, ``$VISUAL``, ``$EDITOR``, then the
platform default. The editor runs while the overlay has temporarily left
raw/alternate-screen mode; the terminal is reclaimed on every exit path.
"""

from __future__ import annotations

import os
import shlex
import subprocess
import sys
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from typing import Any

from .errors import EditorLaunchError
from .feedback import FeedbackBus
from .feedback import feedback as default_feedback

GUI_WAIT_FLAG = "--wait"

# editor type -> (posix command, windows command)
EDITOR_COMMANDS: dict[str, tuple[str, str]] = {
    "vscode": ("code", "code.cmd"),
    "vscodium": ("codium", "codium.cmd"),
    "windsurf": ("windsurf", "windsurf"),
    "cursor": ("cursor", "cursor"),
    "zed": ("zed", "zed"),
    "vim": ("vim", "vim"),
    "neovim": ("nvim", "nvim"),
    "emacs": ("emacs", "emacs"),
    "emacsclient": ("emacsclient", "emacsclient"),
}
GRAPHICAL_EDITORS = frozenset({"vscode", "vscodium", "windsurf", "cursor", "zed"})


def _is_windows(platform: str) -> bool:
    return platform.startswith("win")


def resolve_preferred_editor_command(editor_type: str, platform: str | None = None) -> str | None:
    """Map a configured editor type to its executable, or ``None`` if unknown."""
    commands = EDITOR_COMMANDS.get(editor_type.strip().lower())
    if commands is None:
        return None
    posix, windows = commands
    return windows if _is_windows(platform or sys.platform) else posix


def is_graphical_editor(editor_type: str) -> bool:
    return editor_type.strip().lower() in GRAPHICAL_EDITORS


def default_editor_command(platform: str | None = None) -> str:
    return "notepad" if _is_windows(platform or sys.platform) else "vi"


def build_editor_command(
    target: str,
    *,
    preferred_editor: str | None = None,
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> list[str]:
    """Return the argv that opens ``target`` in the resolved editor."""
    if preferred_editor:
        command = resolve_preferred_editor_command(preferred_editor, platform)
        if command:
            argv = [command]
            if is_graphical_editor(preferred_editor):
                argv.append(GUI_WAIT_FLAG)
            argv.append(target)
            return argv

    env = os.environ if environ is None else environ
    for name in ("VISUAL", "EDITOR"):
        value = env.get(name, "").strip()
        if not value:
            continue
        argv = shlex.split(value)
        if argv:
            return [*argv, target]
    return [default_editor_command(platform), target]


def launch_editor(
    target: str,
    suspend_terminal: Callable[[], AbstractContextManager[Any]],
    *,
    preferred_editor: str | None = None,
    feedback: FeedbackBus | None = None,
    run: Callable[..., subprocess.CompletedProcess] | None = None,
) -> str | None:
    """Run the editor to completion with the terminal handed off.

    Returns an error message (also emitted as feedback) or ``None`` on a clean
    exit.
    """
    bus = feedback if feedback is not None else default_feedback
    runner = run if run is not None else subprocess.run
    cmd = build_editor_command(target, preferred_editor=preferred_editor)
    try:
        with suspend_terminal():
            try:
                completed = runner(cmd, check=False)
            except OSError as exc:
                raise EditorLaunchError(f"Failed to launch editor {cmd[0]!r}: {exc}") from exc
            if completed.returncode != 0:
                raise EditorLaunchError(f"External editor exited with status {completed.returncode}")
    except EditorLaunchError as exc:
        bus.emit_feedback("error", "external editor error", exc)
        return str(exc)
    return None
