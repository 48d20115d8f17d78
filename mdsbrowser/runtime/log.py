"""Logging setup for a process whose terminal belongs to the TUI.

Records never go to stderr while the overlay is up; they go to a file when
one is requested and are dropped otherwise.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .config import LOG_PATH

ENV_LOG = "MDSBROWSER_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PACKAGE_LOGGER = "mdsbrowser"


def resolve_log_file(explicit: Path | None, debug: bool) -> Path | None:
    """Pick the log destination: explicit path, ``$MDSBROWSER_LOG``, or default on debug."""
    if explicit is not None:
        return explicit
    env = os.environ.get(ENV_LOG, "").strip()
    if env:
        return Path(env).expanduser()
    if debug:
        return LOG_PATH
    return None


def configure_logging(log_file: Path | None, *, debug: bool = False) -> logging.Logger:
    root = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.propagate = False

    if log_file is None:
        root.addHandler(logging.NullHandler())
        root.setLevel(logging.WARNING)
        return root

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    return root
