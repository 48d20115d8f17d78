from __future__ import annotations

import logging
import os
import subprocess
import sys
import threading
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)


def folder_open_command(file_path: str, platform: str | None = None) -> list[str]:
    """
    Command that reveals the folder containing ``file_path``.

    - Windows: explorer
    - macOS: open
    - anything else: xdg-open
    """
    folder = str(Path(file_path).parent)
    plat = platform or sys.platform
    if plat.startswith("win"):
        return ["explorer", folder]
    if plat == "darwin":
        return ["open", folder]
    return ["xdg-open", folder]


def _spawn_detached(cmd: list[str]) -> subprocess.Popen:
    kwargs = {}
    if os.name == "posix":
        kwargs["start_new_session"] = True
    process = subprocess.Popen(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        **kwargs,
    )
    # Reap the child off the loop thread so it never lingers as a zombie.
    threading.Thread(target=process.wait, name="folder-open-reaper", daemon=True).start()
    return process


def open_containing_folder(
    file_path: str,
    *,
    platform: str | None = None,
    spawn: Callable[[list[str]], object] | None = None,
) -> bool:
    """
    Best-effort, fire-and-forget folder reveal.

    We never wait for the file manager; failures are logged and reported back
    as ``False`` without surfacing to the user.
    """
    cmd = folder_open_command(file_path, platform)
    try:
        (spawn or _spawn_detached)(cmd)
    except Exception as exc:
        logger.warning("error opening folder with %s", cmd[0], exc_info=exc)
        return False
    return True
