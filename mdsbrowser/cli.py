"""Command-line front door for mdsbrowser.

Parses CLI options, configures logging, and builds the document source and
Drive client from persisted config. Then either prints the local entry list
or runs the interactive overlay.
"""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Callable
from pathlib import Path

from .editor import EDITOR_COMMANDS
from .errors import ConfigError
from .feedback import FeedbackBus, FeedbackEvent, feedback as default_feedback
from .input.keymap import Keymap
from .picker.entries import LocalEntryResolver
from .runtime.app import OverlayConfig, run_overlay
from .runtime.config import (
    load_drive_settings,
    load_global_dir,
    load_keybinding_overrides,
    load_memory_filenames,
    load_preferred_editor,
    load_skills_dir,
    save_preferred_editor,
)
from .runtime.log import configure_logging, resolve_log_file
from .runtime.tasks import BackgroundTasks
from .sources import DEFAULT_MEMORY_FILENAMES, FileSystemDocumentSource
from .storage import DriveClient, token_provider_for

DRAIN_GRACE_SECONDS = 10.0
DRAIN_POLL_SECONDS = 0.05


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdsbrowser",
        description="Browse local memory/agent markdown files and their Google Drive copies.",
    )
    parser.add_argument(
        "roots",
        nargs="*",
        metavar="ROOT",
        help="Directories to scan for memory files. Defaults to current directory.",
    )
    parser.add_argument(
        "--editor",
        choices=sorted(EDITOR_COMMANDS),
        default=None,
        help="Preferred editor for Ctrl+x (overrides config, VISUAL and EDITOR).",
    )
    parser.add_argument(
        "--save-editor",
        action="store_true",
        help="Remember --editor as the preferred editor for later runs.",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Write logs to PATH.")
    parser.add_argument("--debug", action="store_true", help="Log at debug level (default log file if none given).")
    parser.add_argument("--list", action="store_true", help="Print local entries and exit without the overlay.")
    return parser


def build_document_source(roots: list[Path]) -> FileSystemDocumentSource:
    return FileSystemDocumentSource(
        roots,
        memory_filenames=load_memory_filenames() or DEFAULT_MEMORY_FILENAMES,
        global_dir=load_global_dir(),
    )


def print_entries(source: FileSystemDocumentSource) -> None:
    for entry in LocalEntryResolver(source).entries():
        sys.stdout.write(f"{entry.kind.display_name}\t{entry.path}\n")


def wait_for_background_work(
    tasks: BackgroundTasks,
    grace_seconds: float = DRAIN_GRACE_SECONDS,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Drain completions until idle or the grace period ends; return idleness."""
    deadline = clock() + grace_seconds
    while True:
        tasks.drain()
        if not tasks.pending():
            return True
        if clock() >= deadline:
            return False
        sleep(DRAIN_POLL_SECONDS)


class LateFeedback:
    """Collect feedback the user has not seen on the overlay."""

    def __init__(self) -> None:
        self.overlay_closed = False
        self.events: list[FeedbackEvent] = []

    def __call__(self, event: FeedbackEvent) -> None:
        if self.overlay_closed:
            self.events.append(event)

    def close_overlay(self) -> None:
        self.overlay_closed = True

    def include_unshown(self, events: list[FeedbackEvent]) -> None:
        """Queue events the overlay never drew ahead of those after close."""
        earlier = [event for event in events if not any(event is seen for seen in self.events)]
        self.events[:0] = earlier

    def print_events(self) -> None:
        for event in list(self.events):
            stream = sys.stderr if event.level == "error" else sys.stdout
            stream.write(event.format() + "\n")


def main(argv: list[str] | None = None, *, feedback: FeedbackBus | None = None) -> None:
    """Parse CLI arguments and launch the overlay (or the plain listing).

    ``argv`` and ``feedback`` are primarily for tests. Listing mode is also
    used when stdin is not a terminal.
    """
    args = build_parser().parse_args(argv)
    if args.save_editor and args.editor is None:
        raise SystemExit("--save-editor requires --editor")
    configure_logging(resolve_log_file(args.log_file, args.debug), debug=args.debug)

    roots = [Path(root) for root in args.roots] or [Path.cwd()]
    for root in roots:
        if not root.is_dir():
            raise SystemExit(f"Not a directory: {root}")
    source = build_document_source(roots)
    if args.save_editor:
        save_preferred_editor(args.editor)

    if args.list or not sys.stdin.isatty():
        print_entries(source)
        return

    try:
        keymap = Keymap.with_overrides(load_keybinding_overrides())
    except ConfigError as exc:
        raise SystemExit(f"Invalid keybindings in config: {exc}") from exc

    settings = load_drive_settings()
    storage = DriveClient.from_settings(
        settings,
        token_provider_for(settings.token_file),
        skills_dir=load_skills_dir(),
    )

    bus = feedback if feedback is not None else default_feedback
    late = LateFeedback()
    unsubscribe = bus.subscribe(late)
    try:
        session = run_overlay(
            source,
            storage,
            OverlayConfig(keymap=keymap, preferred_editor=args.editor or load_preferred_editor()),
            on_close=late.close_overlay,
            feedback=bus,
        )
        late.close_overlay()
        late.include_unshown(session.unshown_feedback)
        wait_for_background_work(session.tasks)
    finally:
        unsubscribe()
    late.print_events()


if __name__ == "__main__":
    main()
