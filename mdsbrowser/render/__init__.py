"""Presentation helpers for the picker overlay."""

from .help import help_footer_lines
from .overlay import format_entry_row, render_overlay_lines, write_overlay

__all__ = ["format_entry_row", "help_footer_lines", "render_overlay_lines", "write_overlay"]
