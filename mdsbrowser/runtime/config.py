"""Persistent JSON config helpers.

Stores the preferred editor, keybinding overrides, Drive workspace settings,
and local directories. All access is defensive: malformed or missing config
falls back to defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir, user_log_dir

APP_NAME = "mdsbrowser"
CONFIG_FILENAME = "config.json"
CONFIG_DIR = Path(user_config_dir(APP_NAME, appauthor=False))
CONFIG_PATH = CONFIG_DIR / CONFIG_FILENAME
DATA_DIR = Path(user_data_dir(APP_NAME, appauthor=False))
LOG_PATH = Path(user_log_dir(APP_NAME, appauthor=False)) / f"{APP_NAME}.log"
DEFAULT_DRIVE_TOKEN_PATH = CONFIG_DIR / "drive_token"

DEFAULT_DRIVE_APP_FOLDER = "gemini-cli"
DEFAULT_DRIVE_SUBFOLDER = "md-files"
DEFAULT_DRIVE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class DriveSettings:
    """Where documents live on Drive and how to reach it."""

    app_folder: str = DEFAULT_DRIVE_APP_FOLDER
    subfolder: str = DEFAULT_DRIVE_SUBFOLDER
    timeout_seconds: float = DEFAULT_DRIVE_TIMEOUT_SECONDS
    token_file: Path = DEFAULT_DRIVE_TOKEN_PATH


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem and serialization errors are ignored so a read-only config
    directory never breaks the picker.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def _load_nonempty_str(data: dict[str, object], key: str) -> str | None:
    value = data.get(key)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def load_preferred_editor() -> str | None:
    """Return the configured editor type (e.g. ``"vscode"``), if any."""
    return _load_nonempty_str(load_config(), "preferred_editor")


def save_preferred_editor(editor_type: str) -> None:
    stripped = str(editor_type).strip()
    if not stripped:
        return
    config = load_config()
    config["preferred_editor"] = stripped
    save_config(config)


def load_keybinding_overrides() -> dict[str, tuple[str, ...]]:
    """Load ``{"action": ["KEY", ...]}`` overrides.

    Non-string action names, non-list values, and non-string keys are dropped.
    A single string value is accepted as a one-key binding.
    """
    value = load_config().get("keybindings")
    if not isinstance(value, dict):
        return {}
    overrides: dict[str, tuple[str, ...]] = {}
    for action, raw_keys in value.items():
        if not isinstance(action, str):
            continue
        if isinstance(raw_keys, str):
            raw_keys = [raw_keys]
        if not isinstance(raw_keys, list):
            continue
        keys = tuple(key for key in raw_keys if isinstance(key, str) and key)
        if keys:
            overrides[action] = keys
    return overrides


def _coerce_positive_float(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value) if value > 0 else default


def load_drive_settings() -> DriveSettings:
    value = load_config().get("drive")
    if not isinstance(value, dict):
        return DriveSettings()
    token_file = _load_nonempty_str(value, "token_file")
    return DriveSettings(
        app_folder=_load_nonempty_str(value, "app_folder") or DEFAULT_DRIVE_APP_FOLDER,
        subfolder=_load_nonempty_str(value, "subfolder") or DEFAULT_DRIVE_SUBFOLDER,
        timeout_seconds=_coerce_positive_float(value.get("timeout_seconds"), DEFAULT_DRIVE_TIMEOUT_SECONDS),
        token_file=Path(token_file).expanduser() if token_file else DEFAULT_DRIVE_TOKEN_PATH,
    )


def load_skills_dir() -> Path:
    """Directory that receives downloaded agent files."""
    configured = _load_nonempty_str(load_config(), "skills_dir")
    if configured:
        return Path(configured).expanduser()
    return DATA_DIR / "skills"


def load_global_dir() -> Path:
    """Per-user directory searched for global memory files and agents."""
    configured = _load_nonempty_str(load_config(), "global_dir")
    if configured:
        return Path(configured).expanduser()
    return DATA_DIR


def load_memory_filenames() -> tuple[str, ...] | None:
    value = load_config().get("memory_filenames")
    if not isinstance(value, list):
        return None
    names = tuple(name.strip() for name in value if isinstance(name, str) and name.strip())
    return names or None
