"""Picker keymap: which decoded key tokens trigger which picker action."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..errors import ConfigError


class PickerAction(enum.Enum):
    CLOSE = "close"
    ACTIVATE = "activate"
    PUSH_TO_REMOTE = "push_to_remote"
    TOGGLE_SOURCE = "toggle_source"
    MOVE_DOWN = "move_down"
    MOVE_UP = "move_up"
    OPEN_IN_EDITOR = "open_in_editor"
    OPEN_FOLDER = "open_folder"


DEFAULT_BINDINGS: dict[PickerAction, tuple[str, ...]] = {
    PickerAction.CLOSE: ("ESC", "CTRL_C"),
    PickerAction.ACTIVATE: ("ENTER_CR", "ENTER_LF"),
    PickerAction.PUSH_TO_REMOTE: ("ALT_U",),
    PickerAction.TOGGLE_SOURCE: ("ALT_I",),
    PickerAction.MOVE_DOWN: ("DOWN", "CTRL_N"),
    PickerAction.MOVE_UP: ("UP", "CTRL_P"),
    PickerAction.OPEN_IN_EDITOR: ("CTRL_X",),
    PickerAction.OPEN_FOLDER: ("ALT_O",),
}


@dataclass(frozen=True)
class Keymap:
    bindings: dict[PickerAction, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_BINDINGS))

    def keys_for(self, action: PickerAction) -> tuple[str, ...]:
        return self.bindings.get(action, ())

    def matches(self, action: PickerAction, key: str) -> bool:
        return key in self.keys_for(action)

    def validate(self) -> Keymap:
        """Reject keys bound to more than one action."""
        owners: dict[str, PickerAction] = {}
        for action, keys in self.bindings.items():
            for key in keys:
                other = owners.get(key)
                if other is not None and other is not action:
                    raise ConfigError(f"key {key!r} is bound to both {other.value} and {action.value}")
                owners[key] = action
        return self

    @classmethod
    def with_overrides(cls, overrides: Mapping[str, tuple[str, ...]]) -> Keymap:
        """Apply ``{"action_name": keys}`` overrides on top of the defaults."""
        bindings = dict(DEFAULT_BINDINGS)
        for name, keys in overrides.items():
            try:
                action = PickerAction(name)
            except ValueError as exc:
                raise ConfigError(f"unknown picker action in keybindings: {name!r}") from exc
            bindings[action] = tuple(keys)
        return cls(bindings=bindings).validate()


def key_label(key: str) -> str:
    """Human label for a key token (``ALT_U`` -> ``Alt+u``)."""
    if key.startswith("ALT_") and len(key) == 5:
        return f"Alt+{key[-1].lower()}"
    if key.startswith("CTRL_") and len(key) == 6:
        return f"Ctrl+{key[-1].lower()}"
    if key in ("ENTER_CR", "ENTER_LF"):
        return "Enter"
    if key == "ESC":
        return "Esc"
    if key == "UP":
        return "↑"
    if key == "DOWN":
        return "↓"
    return key
