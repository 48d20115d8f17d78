"""ANSI-aware text measurement and line shaping utilities.

Clipping preserves escape sequences; middle truncation works on plain text
so long paths keep both their root and their filename visible.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8
ELLIPSIS = "…"


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 8-column stop, combining marks consume no columns,
    and East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def display_width(text: str) -> int:
    """Visible width of ``text`` with escape sequences ignored."""
    col = 0
    for ch in ANSI_ESCAPE_RE.sub("", text):
        col += char_display_width(ch, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    Tabs are expanded into spaces so clipping aligns with rendered terminal cells.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        if ch == "\t":
            if col + w > max_cols:
                break
            out.append(" " * w)
            col += w
            i += 1
            continue
        if col + w > max_cols:
            break
        out.append(ch)
        col += w
        i += 1

    return "".join(out)


def _take_width(chars: list[str], budget: int) -> list[str]:
    taken: list[str] = []
    used = 0
    for ch in chars:
        w = char_display_width(ch, 0)
        if used + w > budget:
            break
        taken.append(ch)
        used += w
    return taken


def truncate_middle(text: str, max_cols: int) -> str:
    """Shorten plain ``text`` to ``max_cols`` columns by eliding its middle."""
    if max_cols <= 0:
        return ""
    if display_width(text) <= max_cols:
        return text
    if max_cols == 1:
        return ELLIPSIS
    budget = max_cols - 1
    head_budget = (budget + 1) // 2
    tail_budget = budget - head_budget
    head = _take_width(list(text), head_budget)
    tail = _take_width(list(reversed(text)), tail_budget)
    return "".join(head) + ELLIPSIS + "".join(reversed(tail))


def pad_to_width(text: str, width: int, *, align: str = "left") -> str:
    """Pad styled ``text`` with spaces to exactly ``width`` visible columns."""
    clipped = clip_ansi_line(text, width)
    gap = " " * max(0, width - display_width(clipped))
    return gap + clipped if align == "right" else clipped + gap
