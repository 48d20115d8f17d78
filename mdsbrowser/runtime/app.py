"""Overlay composition root.

Builds the resolver, remote listing, view, and dispatcher around one
document source and one remote storage, then hands them to the event loop.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from dataclasses import dataclass, field

from ..editor import launch_editor
from ..feedback import FeedbackBus, FeedbackEvent, feedback as default_feedback
from ..input.keymap import Keymap
from ..opening import open_containing_folder
from ..picker.actions import ActionDispatcher
from ..picker.entries import LocalEntryResolver
from ..picker.remote import RemoteListing, RemoteStorage
from ..picker.view import PickerView
from ..sources import DocumentSource
from .loop import OverlayLoopDeps, run_overlay_loop
from .tasks import BackgroundTasks
from .terminal import TerminalController


@dataclass(frozen=True)
class OverlayConfig:
    """Per-session settings for one overlay run."""

    keymap: Keymap = field(default_factory=Keymap)
    preferred_editor: str | None = None


@dataclass
class OverlaySession:
    """Everything one overlay run owns, wired together."""

    view: PickerView
    remote: RemoteListing
    dispatcher: ActionDispatcher
    tasks: BackgroundTasks
    feedback: FeedbackBus
    unshown_feedback: list[FeedbackEvent] = field(default_factory=list)


def build_session(
    source: DocumentSource,
    storage: RemoteStorage,
    config: OverlayConfig,
    *,
    suspend_terminal: Callable,
    on_close: Callable[[], None] | None = None,
    tasks: BackgroundTasks | None = None,
    feedback: FeedbackBus | None = None,
    open_folder: Callable[[str], object] = open_containing_folder,
) -> OverlaySession:
    """Wire the picker components without touching the terminal."""
    bus = feedback if feedback is not None else default_feedback
    runner = tasks if tasks is not None else BackgroundTasks()
    view_ref: list[PickerView] = []

    def mark_dirty() -> None:
        if view_ref:
            view_ref[0].state.dirty = True

    remote = RemoteListing(storage, runner, bus, on_change=mark_dirty)
    view = PickerView(LocalEntryResolver(source), remote)
    view_ref.append(view)

    def close() -> None:
        # Esc and a settled download can both request close; report it once.
        if view.state.closed:
            return
        view.close()
        if on_close is not None:
            on_close()

    dispatcher = ActionDispatcher(
        view,
        config.keymap,
        remote,
        launch_editor=lambda path: launch_editor(
            path,
            suspend_terminal,
            preferred_editor=config.preferred_editor,
            feedback=bus,
        ),
        open_folder=open_folder,
        on_close=close,
    )
    return OverlaySession(view=view, remote=remote, dispatcher=dispatcher, tasks=runner, feedback=bus)


def run_overlay(
    source: DocumentSource,
    storage: RemoteStorage,
    config: OverlayConfig | None = None,
    *,
    on_close: Callable[[], None] | None = None,
    tasks: BackgroundTasks | None = None,
    feedback: FeedbackBus | None = None,
    terminal: TerminalController | None = None,
    deps: OverlayLoopDeps | None = None,
) -> OverlaySession:
    """Run the picker overlay until the user closes it.

    Returns the session so callers can keep draining background work that
    outlives the overlay and report feedback the last frame never showed.
    """
    controller = terminal
    if controller is None:
        controller = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    session = build_session(
        source,
        storage,
        config if config is not None else OverlayConfig(),
        suspend_terminal=controller.suspended,
        on_close=on_close,
        tasks=tasks,
        feedback=feedback,
    )
    session.unshown_feedback = run_overlay_loop(
        session.view,
        session.dispatcher,
        session.dispatcher.keymap,
        controller,
        controller.stdin_fd,
        session.tasks,
        session.feedback,
        deps=deps if deps is not None else OverlayLoopDeps(),
    )
    return session
