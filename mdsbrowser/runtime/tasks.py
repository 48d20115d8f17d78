"""Background worker threads for network side effects.

Jobs run on daemon threads; their outcomes are queued and handed back to the
overlay loop through :meth:`BackgroundTasks.drain`, so completion callbacks
always execute on the thread that owns view state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Any

logger = logging.getLogger(__name__)

Completion = Callable[["TaskOutcome"], None]
Spawn = Callable[[Callable[[], None], str], None]


@dataclass(frozen=True)
class TaskOutcome:
    """Result of one background job."""

    name: str
    result: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _spawn_daemon_thread(target: Callable[[], None], name: str) -> None:
    worker = threading.Thread(target=target, name=f"mdsbrowser-{name}", daemon=True)
    worker.start()


class BackgroundTasks:
    """Fire-and-forget job runner with a drainable completion queue."""

    def __init__(self, spawn: Spawn | None = None) -> None:
        self._spawn = spawn if spawn is not None else _spawn_daemon_thread
        self._lock = threading.Lock()
        self._in_flight = 0
        self._completions: Queue[tuple[Completion | None, TaskOutcome]] = Queue()

    def submit(
        self,
        name: str,
        job: Callable[[], Any],
        on_complete: Completion | None = None,
    ) -> None:
        """Run ``job`` off-thread and queue ``on_complete`` with its outcome."""
        with self._lock:
            self._in_flight += 1

        def run() -> None:
            try:
                outcome = TaskOutcome(name=name, result=job())
            except Exception as exc:
                logger.debug("background task %s failed", name, exc_info=exc)
                outcome = TaskOutcome(name=name, error=exc)
            self._completions.put((on_complete, outcome))
            with self._lock:
                self._in_flight -= 1

        self._spawn(run, name)

    def drain(self) -> int:
        """Invoke all queued completion callbacks; return how many ran."""
        handled = 0
        while True:
            try:
                on_complete, outcome = self._completions.get_nowait()
            except Empty:
                break
            handled += 1
            if on_complete is None:
                continue
            try:
                on_complete(outcome)
            except Exception:
                logger.exception("completion callback for %s failed", outcome.name)
        return handled

    def pending(self) -> bool:
        """Return whether any job is still running or awaiting drain."""
        with self._lock:
            running = self._in_flight > 0
        return running or not self._completions.empty()


def run_inline(target: Callable[[], None], _name: str) -> None:
    """Spawn strategy that runs jobs synchronously (scripts and tests)."""
    target()


__all__ = ["BackgroundTasks", "TaskOutcome", "run_inline"]
