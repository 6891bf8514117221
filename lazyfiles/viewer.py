"""Single-file viewer panel opened from the browser.

Shows a highlighted, line-numbered view of one file (or its git diff) with
scrolling, in-file search, and ``[``/``]`` hops back into the browser's
changed-file navigation.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import DiffLexer, TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

from .ansi import clip_ansi_line
from .config import DEFAULT_VIEWER_HEIGHT, MAX_VIEWER_HEIGHT, MIN_PANEL_HEIGHT, PANEL_HEIGHT_STEP
from .file_tree_model import FileNode
from .git_status import GitStatusProvider, is_change_status, is_untracked_status
from .ui_theme import DEFAULT_THEME, UITheme

logger = logging.getLogger(__name__)

SEARCH_SCROLL_OFFSET = 3
SCROLL_MARGIN = 10

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


@dataclass(frozen=True)
class ViewerAction:
    """Result of a viewer key press for the owning browser."""

    kind: Literal["none", "close", "navigate"] = "none"
    direction: int = 0


NO_ACTION = ViewerAction()


def read_text(path: Path) -> str:
    """Read text trying UTF-8, UTF-8 with BOM, then latin-1."""
    for encoding in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes so file content cannot drive the terminal."""
    if _CONTROL_RE.search(source) is None:
        return source
    return _CONTROL_RE.sub(lambda match: f"\\x{ord(match.group(0)):02x}", source)


def highlight_source(source: str, filename: str) -> str:
    """Return ``source`` with Pygments terminal colors for ``filename``."""
    try:
        lexer = get_lexer_for_filename(filename, source, stripnl=False)
    except ClassNotFound:
        lexer = TextLexer(stripnl=False)
    return highlight(source, lexer, TerminalFormatter())


def highlight_diff(diff_text: str) -> str:
    return highlight(diff_text, DiffLexer(stripnl=False), TerminalFormatter())


class FileViewer:
    """Viewer state for at most one open file."""

    def __init__(
        self,
        root: Path,
        *,
        git: GitStatusProvider | None = None,
        theme: UITheme | None = None,
        colorize: bool = True,
    ) -> None:
        self.root = root
        self.git = git
        self.theme = theme or DEFAULT_THEME
        self.colorize = colorize
        self.file: FileNode | None = None
        self.height = DEFAULT_VIEWER_HEIGHT
        self.scroll_offset = 0
        self.diff_mode = False
        self.raw_text = ""
        self.search_mode = False
        self.search_query = ""
        self.search_matches: list[int] = []
        self.search_index = 0
        self._content: list[str] | None = None

    @property
    def is_open(self) -> bool:
        return self.file is not None

    @property
    def can_diff(self) -> bool:
        file = self.file
        return (
            self.git is not None
            and file is not None
            and is_change_status(file.git_status)
            and not is_untracked_status(file.git_status)
        )

    def set_file(self, node: FileNode) -> None:
        """Open ``node``, starting in diff mode when it has tracked changes."""
        self.file = node
        self.scroll_offset = 0
        self._reset_search()
        self.diff_mode = self.can_diff
        self._content = None
        try:
            self.raw_text = read_text(node.path)
        except OSError as exc:
            logger.debug("cannot read %s: %s", node.path, exc)
            self.raw_text = ""

    def update_file_ref(self, node: FileNode) -> None:
        """Point at a refreshed node for the same path; scroll is kept."""
        self.file = node

    def close(self) -> None:
        self.file = None
        self.raw_text = ""
        self._content = None
        self._reset_search()

    def _reset_search(self) -> None:
        self.search_mode = False
        self.search_query = ""
        self.search_matches = []
        self.search_index = 0

    def content_lines(self) -> list[str]:
        """Return rendered body lines, loading them on first use."""
        if self._content is None:
            self._content = self._load_content()
        return self._content

    def _load_content(self) -> list[str]:
        if self.file is None:
            return []
        if self.diff_mode and self.git is not None:
            diff_text = self.git.file_diff(self.root, self.file.path)
            if not diff_text.strip():
                return ["No diff available - file may be untracked or unchanged"]
            diff_text = sanitize_terminal_text(diff_text)
            if self.colorize:
                diff_text = highlight_diff(diff_text)
            return diff_text.splitlines()

        source = sanitize_terminal_text(self.raw_text)
        if self.colorize and source:
            source = highlight_source(source, self.file.name)
        return [f"{index:4} │ {line}" for index, line in enumerate(source.splitlines(), start=1)]

    def scroll(self, delta: int) -> None:
        """Move the view by ``delta`` lines, keeping a margin at the end."""
        limit = max(0, len(self.content_lines()) - SCROLL_MARGIN)
        self.scroll_offset = max(0, min(limit, self.scroll_offset + delta))

    def _page_limit(self) -> int:
        return max(0, len(self.content_lines()) - self.height)

    def _update_search_matches(self) -> None:
        self.search_matches = []
        self.search_index = 0
        if not self.search_query:
            return
        needle = self.search_query.casefold()
        for index, line in enumerate(self.raw_text.split("\n")):
            if needle in line.casefold():
                self.search_matches.append(index)
        if self.search_matches:
            self.scroll_offset = max(0, self.search_matches[0] - SEARCH_SCROLL_OFFSET)

    def _jump_to_match(self, direction: int) -> None:
        if not self.search_matches:
            return
        self.search_index = (self.search_index + direction) % len(self.search_matches)
        self.scroll_offset = max(0, self.search_matches[self.search_index] - SEARCH_SCROLL_OFFSET)

    def handle_key(self, key: str) -> ViewerAction:
        if self.file is None:
            return NO_ACTION

        if self.search_mode:
            if key in {"ENTER", "ESC"}:
                self.search_mode = False
                if key == "ESC":
                    self._reset_search()
            elif key == "BACKSPACE":
                self.search_query = self.search_query[:-1]
                self._update_search_matches()
            elif len(key) == 1 and key.isprintable():
                self.search_query += key
                self._update_search_matches()
            return NO_ACTION

        if key == "q":
            return ViewerAction("close")
        if key == "ESC":
            if self.search_query:
                self._reset_search()
                return NO_ACTION
            return ViewerAction("close")
        if key == "/":
            self._reset_search()
            self.search_mode = True
        elif key == "n":
            self._jump_to_match(1)
        elif key == "N":
            self._jump_to_match(-1)
        elif key in {"j", "DOWN"}:
            self.scroll(1)
        elif key in {"k", "UP"}:
            self.scroll(-1)
        elif key == "PAGE_DOWN":
            self.scroll_offset = min(self._page_limit(), self.scroll_offset + self.height)
        elif key == "PAGE_UP":
            self.scroll_offset = max(0, self.scroll_offset - self.height)
        elif key == "g":
            self.scroll_offset = 0
        elif key == "G":
            self.scroll_offset = self._page_limit()
        elif key in {"+", "="}:
            self.height = min(MAX_VIEWER_HEIGHT, self.height + PANEL_HEIGHT_STEP)
        elif key in {"-", "_"}:
            self.height = max(MIN_PANEL_HEIGHT, self.height - PANEL_HEIGHT_STEP)
        elif key == "d" and self.can_diff:
            self.diff_mode = not self.diff_mode
            self._content = None
            self.scroll_offset = 0
        elif key == "]":
            return ViewerAction("navigate", 1)
        elif key == "[":
            return ViewerAction("navigate", -1)
        return NO_ACTION

    def _render_header(self, width: int) -> str:
        file = self.file
        if file is None:
            return ""
        theme = self.theme
        try:
            label = file.path.relative_to(self.root).as_posix()
        except ValueError:
            label = file.name
        header = f"{theme.bold}{label}{theme.reset}"
        untracked = is_untracked_status(file.git_status)
        if untracked:
            header += f"{theme.dim} [UNTRACKED]{theme.reset}"
        elif self.diff_mode:
            header += f"{theme.status_modified} [DIFF]{theme.reset}"
        stats = file.diff_stats
        if stats is not None:
            if stats.added > 0:
                header += f"{theme.added} +{stats.added}{theme.reset}"
            if stats.removed > 0:
                header += f"{theme.removed} -{stats.removed}{theme.reset}"
        elif untracked and file.line_count:
            header += f"{theme.added} +{file.line_count}{theme.reset}"
        if file.line_count is not None:
            header += f"{theme.lines} {file.line_count}L{theme.reset}"
        if self.search_mode:
            header += f"{theme.search_query}  /{self.search_query}█{theme.reset}"
        elif self.search_query and self.search_matches:
            header += f"{theme.dim} [{self.search_index + 1}/{len(self.search_matches)}]{theme.reset}"
        return clip_ansi_line(header, width, theme.reset)

    def _render_help(self, width: int) -> str:
        theme = self.theme
        if self.search_mode:
            text = "Type to search  Enter: confirm  Esc: cancel"
        else:
            content = self.content_lines()
            pct = round(self.scroll_offset / max(1, len(content) - self.height) * 100) if content else 0
            diff_hint = "d: diff  " if self.can_diff else ""
            text = f"j/k: scroll  /: search  n/N: next/prev match  []: files  {diff_hint}q: back  {pct}%"
        return clip_ansi_line(f"{theme.help_dim}{text}{theme.reset}", width, theme.reset)

    def render(self, width: int, height: int | None = None) -> list[str]:
        """Return header, divider, ``height`` body rows, divider, and help."""
        if self.file is None:
            return []
        body_height = self.height if height is None else max(1, height)
        theme = self.theme
        divider = f"{theme.divider}{'─' * max(0, width)}{theme.reset}"
        lines = [self._render_header(width), divider]
        visible = self.content_lines()[self.scroll_offset:self.scroll_offset + body_height]
        for row in range(body_height):
            if row < len(visible):
                lines.append(clip_ansi_line(visible[row], width, theme.reset))
            else:
                lines.append(f"{theme.dim}~{theme.reset}")
        lines.append(divider)
        lines.append(self._render_help(width))
        return lines


__all__ = [
    "FileViewer",
    "NO_ACTION",
    "ViewerAction",
    "highlight_diff",
    "highlight_source",
    "read_text",
    "sanitize_terminal_text",
]
