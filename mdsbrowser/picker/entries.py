"""Local entry resolution for the context-file picker.

Merges known memory-document paths with agent-definition backing files,
classifies each path, and sorts the result deterministically.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..sources import AGENT_FILE_SUFFIXES, AgentDefinition, DocumentSource, has_agent_suffix


class EntryKind(enum.Enum):
    AGENT = "Agent"
    MEMORY = "Memory"
    REMOTE = "Drive"
    UNKNOWN = "Unknown"

    @property
    def display_name(self) -> str:
        return self.value


@dataclass(frozen=True)
class Entry:
    """One browsable row; ``remote_id`` is set only for Drive items."""

    path: str
    kind: EntryKind
    remote_id: str | None = None

    @property
    def is_remote(self) -> bool:
        return self.remote_id is not None


def classify_local_path(path: str, agent_paths: set[str] | frozenset[str]) -> EntryKind:
    """Registry membership wins; otherwise fall back to the filename suffix."""
    if path in agent_paths or has_agent_suffix(path):
        return EntryKind.AGENT
    return EntryKind.MEMORY


def _entry_sort_key(entry: Entry) -> tuple[str, str]:
    return entry.kind.display_name, entry.path


def resolve_local_entries(
    known_paths: Iterable[str],
    definitions: Iterable[AgentDefinition],
) -> tuple[Entry, ...]:
    """Build the sorted, de-duplicated local entry list."""
    agent_paths = frozenset(
        definition.backing_file_path
        for definition in definitions
        if definition.backing_file_path
    )
    all_paths = set(known_paths) | agent_paths
    entries = [Entry(path=path, kind=classify_local_path(path, agent_paths)) for path in all_paths]
    entries.sort(key=_entry_sort_key)
    return tuple(entries)


class LocalEntryResolver:
    """Recompute local entries only when the underlying source data changes."""

    def __init__(self, source: DocumentSource) -> None:
        self._source = source
        self._cache_key: tuple[tuple[str, ...], tuple[str | None, ...]] | None = None
        self._entries: tuple[Entry, ...] = ()

    def entries(self) -> tuple[Entry, ...]:
        known_paths: Sequence[str] = tuple(self._source.known_document_paths())
        definitions: Sequence[AgentDefinition] = tuple(self._source.registered_definitions())
        key = (known_paths, tuple(definition.backing_file_path for definition in definitions))
        if key != self._cache_key:
            self._entries = resolve_local_entries(known_paths, definitions)
            self._cache_key = key
        return self._entries
