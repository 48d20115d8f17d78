"""Remote (Drive) listing adapter for the picker.

Owns the session cache of remote entries and the in-flight flag that gates
the lazy list fetch. Upload and download are not gated; they report through
the feedback bus from the worker thread, so their messages still arrive when
the overlay has already closed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

from ..feedback import FeedbackBus
from ..runtime.tasks import BackgroundTasks, TaskOutcome
from ..storage.drive import RemoteFile, download_destination_dir
from .entries import Entry, EntryKind

__all__ = ["RemoteListing", "RemoteStorage", "download_destination_dir"]


class RemoteStorage(Protocol):
    def list_workspace_files(self) -> Sequence[RemoteFile]: ...

    def upload_file(self, local_path: str) -> None: ...

    def download_file(self, file_id: str, name: str) -> str: ...


def _error_text(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class RemoteListing:
    """Lazily fetched, session-scoped list of remote entries."""

    def __init__(
        self,
        storage: RemoteStorage,
        tasks: BackgroundTasks,
        feedback: FeedbackBus,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._storage = storage
        self._tasks = tasks
        self._feedback = feedback
        self._on_change = on_change
        self.entries: list[Entry] = []
        self.loading = False
        self.fetch_count = 0

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def ensure_loaded(self) -> bool:
        """Start the list fetch unless the cache is filled or a fetch is running."""
        if self.entries or self.loading:
            return False
        self.loading = True
        self.fetch_count += 1
        self._tasks.submit("drive-list", self._storage.list_workspace_files, self._finish_fetch)
        self._changed()
        return True

    def _finish_fetch(self, outcome: TaskOutcome) -> None:
        try:
            if outcome.error is not None:
                self._feedback.emit_feedback(
                    "error",
                    f"[MdsBrowser] Failed to list Drive files: {_error_text(outcome.error)}",
                )
                return
            self.entries = [
                Entry(path=item.name, kind=EntryKind.REMOTE, remote_id=item.id)
                for item in outcome.result or ()
            ]
        finally:
            self.loading = False
            self._changed()

    def upload(self, local_path: str) -> None:
        """Push a local file to the workspace folder (fire-and-forget)."""
        feedback = self._feedback
        storage = self._storage
        feedback.emit_feedback("info", f"Saving {local_path} to Drive...")

        def job() -> None:
            try:
                storage.upload_file(local_path)
            except Exception as exc:
                feedback.emit_feedback("error", f"Upload failed: {_error_text(exc)}")
                return
            feedback.emit_feedback("info", f"Successfully uploaded {local_path} to Drive.")

        self._tasks.submit("drive-upload", job)

    def download(
        self,
        remote_id: str,
        display_name: str,
        on_settled: Callable[[], None] | None = None,
    ) -> None:
        """Fetch a remote file to disk; ``on_settled`` runs on success or failure."""
        feedback = self._feedback
        storage = self._storage
        feedback.emit_feedback("info", f"Downloading {display_name}...")

        def job() -> str | None:
            try:
                destination = storage.download_file(remote_id, display_name)
            except Exception as exc:
                feedback.emit_feedback("error", f"Download failed: {_error_text(exc)}")
                return None
            feedback.emit_feedback("info", f"File downloaded to: {destination}")
            return destination

        def settle(_outcome: TaskOutcome) -> None:
            if on_settled is not None:
                on_settled()

        self._tasks.submit("drive-download", job, settle)
