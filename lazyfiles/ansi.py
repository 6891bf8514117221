"""ANSI-aware width measurement and clipping for rendered rows.

Rows carry color escapes; these helpers keep clipping aligned with the
terminal cells the text actually occupies.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8
ELLIPSIS = "…"


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for ``ch`` printed at column ``col``."""
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def display_width(text: str) -> int:
    """Return the number of terminal columns ``text`` occupies."""
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def clip_ansi_line(text: str, max_cols: int, reset: str = "") -> str:
    """Trim a styled row to ``max_cols`` columns, marking the cut with ``…``.

    Escape sequences are kept and do not count toward width. When the row is
    clipped, ``reset`` is appended so a dangling color does not leak into
    the next line.
    """
    if max_cols <= 0 or not text:
        return ""
    if display_width(text) <= max_cols:
        return text

    budget = max_cols - 1
    out: list[str] = []
    col = 0
    i = 0
    while i < len(text):
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        width = char_display_width(ch, col)
        if col + width > budget:
            break
        out.append(" " * width if ch == "\t" else ch)
        col += width
        i += 1
    out.append(ELLIPSIS)
    out.append(reset)
    return "".join(out)


__all__ = [
    "ANSI_ESCAPE_RE",
    "char_display_width",
    "clip_ansi_line",
    "display_width",
    "strip_ansi",
]
