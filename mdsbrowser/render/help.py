"""Contextual help footer for the picker overlay.

Footer text is built from the active keymap so user overrides stay truthful.
Presentation-only and side-effect free.
"""

from __future__ import annotations

from ..input.keymap import Keymap, PickerAction, key_label

KEY_STYLE = "\033[38;5;229m"
HINT_STYLE = "\033[2;38;5;250m"
RESET = "\033[0m"
SEPARATOR = f" {HINT_STYLE}│{RESET} "


def _keys(keymap: Keymap, action: PickerAction) -> str:
    labels: list[str] = []
    for key in keymap.keys_for(action):
        label = key_label(key)
        if label not in labels:
            labels.append(label)
    return "/".join(labels) or "-"


def _hint(keys: str, text: str) -> str:
    return f"{KEY_STYLE}{keys}{RESET}{HINT_STYLE}: {text}{RESET}"


def _navigate(keymap: Keymap) -> str:
    down = keymap.keys_for(PickerAction.MOVE_DOWN)
    up = keymap.keys_for(PickerAction.MOVE_UP)
    return f"{key_label(up[0]) if up else '-'}/{key_label(down[0]) if down else '-'}"


def _close_keys(keymap: Keymap) -> str:
    activate = keymap.keys_for(PickerAction.ACTIVATE)
    close = keymap.keys_for(PickerAction.CLOSE)
    labels = [key_label(key) for key in (activate[:1] + close[:1])]
    return "/".join(labels) or "-"


def help_footer_lines(keymap: Keymap, remote: bool) -> tuple[str, str]:
    """Return the two footer lines for the active source."""
    if not remote:
        first = SEPARATOR.join(
            (
                _hint(_navigate(keymap), "Navigate"),
                _hint(_close_keys(keymap), "Close"),
                _hint(_keys(keymap, PickerAction.OPEN_IN_EDITOR), "Open File"),
                _hint(_keys(keymap, PickerAction.OPEN_FOLDER), "Open Folder"),
            )
        )
        second = SEPARATOR.join(
            (
                _hint(_keys(keymap, PickerAction.PUSH_TO_REMOTE), "Upload to Drive"),
                _hint(_keys(keymap, PickerAction.TOGGLE_SOURCE), "List Drive"),
            )
        )
        return first, second
    first = SEPARATOR.join(
        (
            _hint(_navigate(keymap), "Navigate"),
            _hint(_close_keys(keymap), "Close"),
            _hint(_keys(keymap, PickerAction.ACTIVATE), "Download File"),
        )
    )
    second = _hint(_keys(keymap, PickerAction.TOGGLE_SOURCE), "List Local")
    return first, second


def empty_list_hint(keymap: Keymap, remote: bool) -> str:
    target = "List Local" if remote else "List Drive"
    close = _keys(keymap, PickerAction.CLOSE).split("/")[0]
    return f"{HINT_STYLE}Press {close} to close{RESET}{SEPARATOR}" + _hint(
        _keys(keymap, PickerAction.TOGGLE_SOURCE), target
    )
