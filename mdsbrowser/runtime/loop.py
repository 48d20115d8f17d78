"""Interactive event loop for the picker overlay.

Coordinates background completions, rendering, and key dispatch. The loop
is wiring only; picker behavior lives in the view and the dispatcher.
"""

from __future__ import annotations

import shutil
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from os import terminal_size

from ..feedback import FeedbackBus, FeedbackEvent
from ..input.keymap import Keymap
from ..input.reader import read_key as default_read_key
from ..picker.actions import ActionDispatcher
from ..picker.view import PickerView
from ..render.overlay import render_overlay_lines, write_overlay
from .tasks import BackgroundTasks
from .terminal import TerminalController


@dataclass(frozen=True)
class OverlayLoopTiming:
    """Timing constants controlling the overlay loop."""

    poll_interval_ms: int = 50
    local_rescan_interval_ms: int = 1000


class FeedbackStatus:
    """Latest feedback message plus events not yet drawn, updated from any thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: FeedbackEvent | None = None
        self._unrendered: list[FeedbackEvent] = []

    def __call__(self, event: FeedbackEvent) -> None:
        with self._lock:
            self._latest = event
            self._unrendered.append(event)

    def has_unrendered(self) -> bool:
        with self._lock:
            return bool(self._unrendered)

    def mark_rendered(self) -> FeedbackEvent | None:
        """Forget pending events and return the one the status line shows."""
        with self._lock:
            self._unrendered.clear()
            return self._latest

    def unrendered(self) -> list[FeedbackEvent]:
        with self._lock:
            return list(self._unrendered)


@dataclass(frozen=True)
class OverlayLoopDeps:
    """Injected I/O used by ``run_overlay_loop``."""

    read_key: Callable[..., str] = default_read_key
    render: Callable[[list[str]], None] = write_overlay
    get_terminal_size: Callable[[tuple[int, int]], terminal_size] = shutil.get_terminal_size
    clock: Callable[[], float] = time.monotonic


def run_overlay_loop(
    view: PickerView,
    dispatcher: ActionDispatcher,
    keymap: Keymap,
    terminal: TerminalController,
    stdin_fd: int,
    tasks: BackgroundTasks,
    feedback: FeedbackBus,
    timing: OverlayLoopTiming = OverlayLoopTiming(),
    deps: OverlayLoopDeps = OverlayLoopDeps(),
) -> list[FeedbackEvent]:
    """Run until the view is closed.

    Each iteration drains finished background work, rescans local documents
    at most once per rescan interval, redraws when anything changed, then
    waits up to one poll interval for a key.

    Returns the feedback events that arrived after the last drawn frame, such
    as the result of a download that closed the overlay.
    """
    status = FeedbackStatus()
    unsubscribe = feedback.subscribe(status)
    last_size: tuple[int, int] | None = None
    last_rescan: float | None = None
    try:
        with terminal.raw_mode():
            while not view.state.closed:
                tasks.drain()
                if view.state.closed:
                    break
                view.sync_remote()

                now = deps.clock()
                if last_rescan is None or (now - last_rescan) * 1000 >= timing.local_rescan_interval_ms:
                    last_rescan = now
                    view.refresh_local()

                term = deps.get_terminal_size((80, 24))
                size = (term.columns, term.lines)
                if size != last_size:
                    last_size = size
                    view.state.dirty = True
                if status.has_unrendered():
                    view.state.dirty = True

                if view.state.dirty:
                    event = status.mark_rendered()
                    deps.render(
                        render_overlay_lines(
                            view,
                            keymap,
                            term.columns,
                            term.lines,
                            status_message=event.format() if event is not None else "",
                            status_is_error=event is not None and event.level == "error",
                        )
                    )
                    view.state.dirty = False

                key = deps.read_key(stdin_fd, timing.poll_interval_ms)
                if not key:
                    continue
                dispatcher.handle_key(key)
    finally:
        unsubscribe()
    return status.unrendered()
