"""Input-layer public API: raw key decoding and the picker keymap."""

from .keymap import DEFAULT_BINDINGS, Keymap, PickerAction, key_label
from .reader import ESC_SEQUENCE_TIMEOUT_MS, read_key

__all__ = [
    "read_key",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "DEFAULT_BINDINGS",
    "Keymap",
    "PickerAction",
    "key_label",
]
