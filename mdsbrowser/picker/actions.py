"""Priority-ordered key dispatch for the picker overlay.

Rules are evaluated in a fixed order and the first match wins. Every key is
consumed, matched or not, so nothing leaks to handlers underneath the overlay.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..input.keymap import Keymap, PickerAction
from .remote import RemoteListing
from .view import PickerView, Source


@dataclass(frozen=True)
class ActionRule:
    action: PickerAction
    matches: Callable[[str], bool]
    handler: Callable[[], None]


class ActionDispatcher:
    """Map decoded key tokens to picker commands against the current view."""

    def __init__(
        self,
        view: PickerView,
        keymap: Keymap,
        remote: RemoteListing,
        *,
        launch_editor: Callable[[str], object],
        open_folder: Callable[[str], object],
        on_close: Callable[[], None],
    ) -> None:
        self.view = view
        self.keymap = keymap
        self.remote = remote
        self._launch_editor = launch_editor
        self._open_folder = open_folder
        self._on_close = on_close
        self.rules: tuple[ActionRule, ...] = (
            self._rule(PickerAction.CLOSE, self.close),
            self._rule(PickerAction.ACTIVATE, self.activate),
            self._rule(PickerAction.PUSH_TO_REMOTE, self.push_to_remote),
            self._rule(PickerAction.TOGGLE_SOURCE, view.toggle_source),
            self._rule(PickerAction.MOVE_DOWN, lambda: view.move_cursor(1)),
            self._rule(PickerAction.MOVE_UP, lambda: view.move_cursor(-1)),
            self._rule(PickerAction.OPEN_IN_EDITOR, self.open_in_editor),
            self._rule(PickerAction.OPEN_FOLDER, self.open_folder),
        )

    def _rule(self, action: PickerAction, handler: Callable[[], None]) -> ActionRule:
        return ActionRule(action=action, matches=lambda key: self.keymap.matches(action, key), handler=handler)

    def match(self, key: str) -> ActionRule | None:
        for rule in self.rules:
            if rule.matches(key):
                return rule
        return None

    def handle_key(self, key: str) -> bool:
        """Run the first matching rule; always report the key as handled."""
        rule = self.match(key)
        if rule is not None:
            rule.handler()
        return True

    def _local_selection(self) -> str | None:
        if self.view.state.source is not Source.LOCAL:
            return None
        entry = self.view.selected_entry()
        return entry.path if entry is not None else None

    def close(self) -> None:
        self._on_close()

    def activate(self) -> None:
        entry = self.view.selected_entry()
        if self.view.state.source is Source.REMOTE and entry is not None and entry.remote_id:
            self.remote.download(entry.remote_id, entry.path, on_settled=self._on_close)
            return
        self._on_close()

    def push_to_remote(self) -> None:
        path = self._local_selection()
        if path is not None:
            self.remote.upload(path)

    def open_in_editor(self) -> None:
        path = self._local_selection()
        if path is not None:
            self._launch_editor(path)
            self.view.state.dirty = True

    def open_folder(self) -> None:
        path = self._local_selection()
        if path is not None:
            self._open_folder(path)
