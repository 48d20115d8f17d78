"""Overlay rendering: view state in, styled screen rows out.

``render_overlay_lines`` is pure so it can be asserted on directly;
``write_overlay`` is the only function that touches the terminal.
"""

from __future__ import annotations

import os
import sys

from ..ansi import clip_ansi_line, pad_to_width, truncate_middle
from ..input.keymap import Keymap
from ..picker.view import PickerView, Source, overlay_viewport_height
from .help import RESET, empty_list_hint, help_footer_lines

ACCENT_STYLE = "\033[38;5;141m"
MUTED_STYLE = "\033[38;5;245m"
DIM_STYLE = "\033[2;38;5;245m"
ERROR_STYLE = "\033[38;5;203m"
ACTIVE_MARKER = "❯ "
INACTIVE_MARKER = "  "
KIND_COLUMN_WIDTH = 10
PADDING_X = 1


def _title(view: PickerView, count: int | None) -> str:
    label = view.state.source.label
    if count is None:
        return f"{ACCENT_STYLE}{label} Files{RESET}"
    return f"{ACCENT_STYLE}{label} Markdown Files ({count} total){RESET}"


def format_entry_row(kind: str, path: str, width: int, *, active: bool) -> str:
    """One list row: marker + kind cell, divider, middle-truncated path."""
    marker = ACTIVE_MARKER if active else INACTIVE_MARKER
    kind_cell = pad_to_width(f"{marker}{kind}", KIND_COLUMN_WIDTH, align="right")
    path_width = max(1, width - KIND_COLUMN_WIDTH - 3)
    shown_path = truncate_middle(path, path_width)
    if active:
        return f"{ACCENT_STYLE}{kind_cell}{RESET} {MUTED_STYLE}│{RESET} {ACCENT_STYLE}{shown_path}{RESET}"
    return f"{kind_cell} {MUTED_STYLE}│{RESET} {DIM_STYLE}{shown_path}{RESET}"


def render_overlay_lines(
    view: PickerView,
    keymap: Keymap,
    width: int,
    height: int,
    status_message: str = "",
    status_is_error: bool = False,
) -> list[str]:
    """Build the overlay rows for a ``width`` x ``height`` terminal."""
    inner_width = max(1, width - 2 * PADDING_X - 1)
    remote = view.state.source is Source.REMOTE
    rows: list[str] = [""]

    if view.is_remote_loading():
        rows.append(_title(view, None))
        rows.append(f"{MUTED_STYLE}Loading files from Google Drive...{RESET}")
    else:
        entries = view.active_entries()
        if not entries:
            rows.append(_title(view, len(entries)))
            rows.append(f"{MUTED_STYLE}No files found.{RESET}")
            rows.append(empty_list_hint(keymap, remote))
        else:
            rows.append(_title(view, len(entries)))
            rows.append("")
            start, _end, visible = view.visible_window(overlay_viewport_height(height))
            for offset, entry in enumerate(visible):
                rows.append(
                    format_entry_row(
                        entry.kind.display_name,
                        entry.path,
                        inner_width,
                        active=start + offset == view.state.cursor_index,
                    )
                )
            rows.append("")
            rows.extend(help_footer_lines(keymap, remote))

    if status_message:
        style = ERROR_STYLE if status_is_error else MUTED_STYLE
        rows.append(f"{style}{status_message}{RESET}")

    pad = " " * PADDING_X
    return [clip_ansi_line(pad + row, max(1, width - 1)) if row else "" for row in rows[: max(1, height)]]


def write_overlay(lines: list[str]) -> None:
    out: list[str] = ["\033[H\033[J"]
    for idx, line in enumerate(lines):
        if idx:
            out.append("\r\n")
        out.append(line)
        if "\033" in line:
            out.append(RESET)
    os.write(sys.stdout.fileno(), "".join(out).encode("utf-8", errors="replace"))
