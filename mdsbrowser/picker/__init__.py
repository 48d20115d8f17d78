"""Context-file picker: entry resolution, remote listing, view state, dispatch."""

from .actions import ActionDispatcher, ActionRule
from .entries import Entry, EntryKind, LocalEntryResolver, classify_local_path, resolve_local_entries
from .remote import RemoteListing, RemoteStorage
from .view import PickerView, Source, ViewState, compute_scroll_window, overlay_viewport_height

__all__ = [
    "ActionDispatcher",
    "ActionRule",
    "Entry",
    "EntryKind",
    "LocalEntryResolver",
    "PickerView",
    "RemoteListing",
    "RemoteStorage",
    "Source",
    "ViewState",
    "classify_local_path",
    "compute_scroll_window",
    "overlay_viewport_height",
    "resolve_local_entries",
]
