"""Document and agent-registry sources backing the local picker list.

The picker only needs two queries: which memory documents are known, and
which agent definitions are registered (each optionally backed by a file).
``FileSystemDocumentSource`` answers both by scanning a few directories.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_FILENAMES: tuple[str, ...] = ("GEMINI.md", "AGENTS.md")
AGENT_FILE_SUFFIXES: tuple[str, ...] = ("agents.md", ".agents")
AGENT_DEFINITION_SUFFIXES: tuple[str, ...] = (".md", ".agents")
PROJECT_AGENTS_DIRNAME = Path(".gemini") / "agents"


@dataclass(frozen=True)
class AgentDefinition:
    name: str
    backing_file_path: str | None = None


def has_agent_suffix(name: str) -> bool:
    """Return whether ``name`` follows the agent-file naming convention."""
    lowered = name.lower()
    return any(lowered.endswith(suffix) for suffix in AGENT_FILE_SUFFIXES)


class DocumentSource(Protocol):
    def known_document_paths(self) -> Sequence[str]: ...

    def registered_definitions(self) -> Sequence[AgentDefinition]: ...


@dataclass(frozen=True)
class StaticDocumentSource:
    """Fixed in-memory source, handy for embedding and tests."""

    paths: tuple[str, ...] = ()
    definitions: tuple[AgentDefinition, ...] = ()

    def known_document_paths(self) -> Sequence[str]:
        return self.paths

    def registered_definitions(self) -> Sequence[AgentDefinition]:
        return self.definitions


def _safe_is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


class FileSystemDocumentSource:
    """Discover memory files and agent definitions under a set of roots.

    Memory files are files named one of ``memory_filenames`` directly inside
    each root (and the optional global directory). Agent definitions are the
    ``*.md``/``*.agents`` files of each agent directory; by default every root
    contributes ``<root>/.gemini/agents``.
    """

    def __init__(
        self,
        roots: Iterable[Path],
        *,
        memory_filenames: Sequence[str] = DEFAULT_MEMORY_FILENAMES,
        global_dir: Path | None = None,
        agent_dirs: Iterable[Path] | None = None,
    ) -> None:
        self.roots = tuple(Path(root).expanduser().resolve() for root in roots)
        self.memory_filenames = tuple(memory_filenames)
        self.global_dir = global_dir.expanduser() if global_dir is not None else None
        if agent_dirs is None:
            dirs = [root / PROJECT_AGENTS_DIRNAME for root in self.roots]
            if self.global_dir is not None:
                dirs.append(self.global_dir / "agents")
            agent_dirs = dirs
        self.agent_dirs = tuple(Path(directory).expanduser() for directory in agent_dirs)

    def _search_dirs(self) -> list[Path]:
        dirs = list(self.roots)
        if self.global_dir is not None and self.global_dir not in dirs:
            dirs.append(self.global_dir)
        return dirs

    def known_document_paths(self) -> Sequence[str]:
        found: list[str] = []
        for directory in self._search_dirs():
            for filename in self.memory_filenames:
                candidate = directory / filename
                if _safe_is_file(candidate):
                    found.append(str(candidate))
        return tuple(found)

    def registered_definitions(self) -> Sequence[AgentDefinition]:
        definitions: list[AgentDefinition] = []
        for directory in self.agent_dirs:
            try:
                children = sorted(directory.iterdir())
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("cannot scan agent directory %s: %s", directory, exc)
                continue
            for child in children:
                if not child.name.lower().endswith(AGENT_DEFINITION_SUFFIXES):
                    continue
                if not _safe_is_file(child):
                    continue
                definitions.append(AgentDefinition(name=child.stem, backing_file_path=str(child)))
        return tuple(definitions)
