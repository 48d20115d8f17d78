"""Picker view state: active source, one cursor, and the scroll window.

The active list is a single indirection over the local and remote lists, so
there is only ever one cursor; switching sources resets it to the top.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from .entries import Entry, LocalEntryResolver
from .remote import RemoteListing

MIN_VIEWPORT_ROWS = 5
OVERLAY_CHROME_ROWS = 10


class Source(enum.Enum):
    LOCAL = "local"
    REMOTE = "remote"

    @property
    def label(self) -> str:
        return "Local" if self is Source.LOCAL else "Drive"

    def flipped(self) -> Source:
        return Source.REMOTE if self is Source.LOCAL else Source.LOCAL


@dataclass
class ViewState:
    source: Source = Source.LOCAL
    cursor_index: int = 0
    remote_entries: list[Entry] = field(default_factory=list)
    remote_loading: bool = False
    dirty: bool = True
    closed: bool = False


def compute_scroll_window(viewport_height: int, cursor_index: int, list_length: int) -> tuple[int, int]:
    """Return ``[start, end)`` keeping the cursor centered where possible."""
    height = max(0, viewport_height)
    max_start = max(0, list_length - height)
    start = max(0, min(cursor_index - height // 2, max_start))
    return start, start + height


def overlay_viewport_height(terminal_rows: int) -> int:
    """Rows available for list entries once header and footer are drawn."""
    return max(MIN_VIEWPORT_ROWS, terminal_rows - OVERLAY_CHROME_ROWS)


class PickerView:
    """Cursor/source state machine over the local and remote entry lists."""

    def __init__(self, resolver: LocalEntryResolver, remote: RemoteListing) -> None:
        self.resolver = resolver
        self.remote = remote
        self.state = ViewState()
        self._local: tuple[Entry, ...] | None = None

    def sync_remote(self) -> None:
        """Mirror the adapter's cache and loading flag into view state."""
        entries = self.remote.entries
        loading = self.remote.loading
        if entries is not self.state.remote_entries or loading != self.state.remote_loading:
            self.state.remote_entries = entries
            self.state.remote_loading = loading
            self.state.dirty = True
        self.clamp_cursor()

    def local_entries(self) -> tuple[Entry, ...]:
        if self._local is None:
            self._local = self.resolver.entries()
        return self._local

    def refresh_local(self) -> bool:
        """Re-read the document source; return whether the local list changed."""
        entries = self.resolver.entries()
        if entries is self._local:
            return False
        self._local = entries
        self.clamp_cursor()
        self.state.dirty = True
        return True

    def active_entries(self) -> tuple[Entry, ...] | list[Entry]:
        if self.state.source is Source.LOCAL:
            return self.local_entries()
        return self.state.remote_entries

    def is_remote_loading(self) -> bool:
        return self.state.source is Source.REMOTE and self.state.remote_loading

    def selected_entry(self) -> Entry | None:
        entries = self.active_entries()
        if 0 <= self.state.cursor_index < len(entries):
            return entries[self.state.cursor_index]
        return None

    def clamp_cursor(self) -> None:
        last = max(0, len(self.active_entries()) - 1)
        clamped = max(0, min(self.state.cursor_index, last))
        if clamped != self.state.cursor_index:
            self.state.cursor_index = clamped
            self.state.dirty = True

    def move_cursor(self, delta: int) -> None:
        previous = self.state.cursor_index
        last = max(0, len(self.active_entries()) - 1)
        self.state.cursor_index = max(0, min(last, self.state.cursor_index + delta))
        if self.state.cursor_index != previous:
            self.state.dirty = True

    def toggle_source(self) -> None:
        self.state.source = self.state.source.flipped()
        self.state.cursor_index = 0
        self.state.dirty = True
        if self.state.source is Source.REMOTE:
            self.remote.ensure_loaded()
            self.sync_remote()

    def visible_window(self, viewport_height: int) -> tuple[int, int, list[Entry]]:
        entries = self.active_entries()
        start, end = compute_scroll_window(viewport_height, self.state.cursor_index, len(entries))
        return start, end, list(entries[start:end])

    def close(self) -> None:
        self.state.closed = True
        self.state.dirty = True
