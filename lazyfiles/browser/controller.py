"""Keyboard handling and panel rendering for the file browser.

The controller owns only navigation state (``BrowserCursor``); the tree and
its background work belong to the session. While a file is open, keys and
rendering are routed to the viewer.
"""

from __future__ import annotations

from collections.abc import Callable

from ..config import PANEL_HEIGHT_STEP, clamp_browser_height, save_browser_height
from ..file_tree_model import DirectoryNode, FileNode, FlatEntry
from ..runtime.reconcile import TreeReconciler
from ..runtime.session import FileTreeSession
from ..state import BrowserCursor
from ..ui_theme import DEFAULT_THEME, UITheme
from ..viewer import FileViewer
from . import rendering


class BrowserController:
    """Browser panel over a ``FileTreeSession``."""

    def __init__(
        self,
        session: FileTreeSession,
        viewer: FileViewer | None = None,
        on_close: Callable[[], None] | None = None,
        *,
        theme: UITheme | None = None,
        cursor: BrowserCursor | None = None,
        persist_height: bool = True,
    ) -> None:
        self.session = session
        self.viewer = viewer
        self.on_close = on_close
        self.theme = theme or DEFAULT_THEME
        self.cursor = cursor or BrowserCursor()
        self.persist_height = persist_height
        self.reconciler = TreeReconciler(session, self.cursor, viewer)
        self.closed = False

    def display_entries(self) -> list[FlatEntry]:
        return self.session.get_projection(self.cursor.search_query, self.cursor.show_only_changed)

    def selected_entry(self) -> FlatEntry | None:
        entries = self.display_entries()
        if 0 <= self.cursor.selected_index < len(entries):
            return entries[self.cursor.selected_index]
        return None

    def start(self) -> None:
        """Begin periodic reconciliation (version-controlled roots only)."""
        self.session.start_polling(self.reconciler.reconcile)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.session.close()
        if self.on_close is not None:
            self.on_close()

    def _move(self, delta: int) -> None:
        total = len(self.display_entries())
        self.cursor.selected_index = max(0, min(total - 1, self.cursor.selected_index + delta))

    def _resize(self, delta: int) -> None:
        self.cursor.browser_height = clamp_browser_height(self.cursor.browser_height + delta)
        if self.persist_height:
            save_browser_height(self.cursor.browser_height)

    def _open_file(self, node: FileNode) -> None:
        if self.viewer is None:
            return
        if node.line_count is None:
            self.session.ensure_line_count(node)
        self.viewer.set_file(node)

    def navigate_to_change(self, direction: int) -> None:
        """Select the next (or previous) changed file, wrapping around.

        Every directory except the target's ancestors is collapsed so the
        target row is visible.
        """
        changed = self.session.changed_files()
        if not changed:
            return
        current = self.selected_entry()
        current_index = -1
        if current is not None and isinstance(current.node, FileNode):
            for index, item in enumerate(changed):
                if item.file.path == current.node.path:
                    current_index = index
                    break
        if current_index == -1:
            next_index = 0 if direction > 0 else len(changed) - 1
        else:
            next_index = (current_index + direction) % len(changed)

        target = changed[next_index]
        keep = {ancestor.path for ancestor in target.ancestors}
        self.session.collapse_all_except(keep)
        for index, entry in enumerate(self.display_entries()):
            if entry.node.path == target.file.path:
                self.cursor.selected_index = index
                break

    def _handle_viewer_key(self, key: str) -> None:
        if self.viewer is None:
            return
        action = self.viewer.handle_key(key)
        if action.kind == "close":
            self.viewer.close()
        elif action.kind == "navigate":
            self.viewer.close()
            self.navigate_to_change(action.direction)
            entry = self.selected_entry()
            if entry is not None and isinstance(entry.node, FileNode):
                self._open_file(entry.node)

    def _handle_search_key(self, key: str) -> None:
        cursor = self.cursor
        if key == "ENTER":
            cursor.search_mode = False
            cursor.selected_index = 0
        elif key == "BACKSPACE":
            cursor.search_query = cursor.search_query[:-1]
            cursor.selected_index = 0
        elif len(key) == 1 and key.isprintable():
            cursor.search_query += key
            cursor.selected_index = 0

    def handle_key(self, key: str) -> None:
        if self.closed:
            return
        if self.viewer is not None and self.viewer.is_open:
            self._handle_viewer_key(key)
            return

        cursor = self.cursor
        if key == "q" and not cursor.search_mode:
            self.close()
            return
        if key == "ESC":
            if cursor.search_mode:
                cursor.search_mode = False
                cursor.search_query = ""
            else:
                self.close()
            return
        if key == "/" and not cursor.search_mode:
            cursor.search_mode = True
            cursor.search_query = ""
            return
        if key in {"j", "DOWN"} and not (cursor.search_mode and key == "j"):
            self._move(1)
            return
        if key in {"k", "UP"} and not (cursor.search_mode and key == "k"):
            self._move(-1)
            return
        if cursor.search_mode:
            self._handle_search_key(key)
            return

        entry = self.selected_entry()
        node = entry.node if entry is not None else None
        if key == "ENTER":
            if isinstance(node, DirectoryNode):
                self.session.toggle_expand(node)
            elif isinstance(node, FileNode):
                self._open_file(node)
        elif key in {"l", "RIGHT"}:
            if isinstance(node, DirectoryNode) and not node.expanded:
                self.session.toggle_expand(node)
            elif isinstance(node, FileNode):
                self._open_file(node)
        elif key in {"h", "LEFT"}:
            if isinstance(node, DirectoryNode) and node.expanded:
                self.session.toggle_expand(node)
        elif key == "PAGE_DOWN":
            self._move(cursor.browser_height)
        elif key == "PAGE_UP":
            self._move(-cursor.browser_height)
        elif key in {"+", "="}:
            self._resize(PANEL_HEIGHT_STEP)
        elif key in {"-", "_"}:
            self._resize(-PANEL_HEIGHT_STEP)
        elif key == "c":
            cursor.show_only_changed = not cursor.show_only_changed
            cursor.selected_index = 0
        elif key == "]":
            self.navigate_to_change(1)
        elif key == "[":
            self.navigate_to_change(-1)

    def render(self, width: int) -> list[str]:
        if self.viewer is not None and self.viewer.is_open:
            return self.viewer.render(width)
        return self.render_browser(width)

    def render_browser(self, width: int, *, animate: bool = True) -> list[str]:
        """Return header, divider, rows window, position, divider, and help."""
        session = self.session
        cursor = self.cursor
        theme = self.theme
        scan_state = session.scan_state
        counting = session.line_counts.pending > 0
        if animate and (scan_state.is_scanning or counting):
            scan_state.spinner_index = (scan_state.spinner_index + 1) % len(rendering.SPINNER_FRAMES)

        lines = [
            rendering.format_header(
                session.root.name,
                session.branch,
                session.summary,
                scan_state,
                counting,
                width,
                search_mode=cursor.search_mode,
                search_query=cursor.search_query,
                theme=theme,
            ),
            rendering.format_divider(width, theme),
        ]

        entries = self.display_entries()
        height = cursor.browser_height
        if not entries:
            label = rendering.format_empty_label(scan_state.is_scanning, cursor.search_query)
            lines.append(f"{theme.dim}{label}{theme.reset}")
            lines.extend([""] * (height - 1))
            # blank footer row; same height as the non-empty layout
            lines.append("")
        else:
            cursor.selected_index = max(0, min(cursor.selected_index, len(entries) - 1))
            start, end = rendering.window_bounds(cursor.selected_index, len(entries), height)
            for index in range(start, end):
                entry = entries[index]
                lines.append(
                    rendering.format_row(
                        entry.node,
                        entry.depth,
                        width,
                        selected=index == cursor.selected_index,
                        theme=theme,
                    )
                )
            lines.extend([""] * (height - (end - start)))
            position = rendering.format_position(cursor.selected_index, len(entries))
            lines.append(f"{theme.dim}{position}{theme.reset}")

        lines.append(rendering.format_divider(width, theme))
        lines.append(
            rendering.format_help(
                width,
                search_mode=cursor.search_mode,
                show_only_changed=cursor.show_only_changed,
                theme=theme,
            )
        )
        return lines


__all__ = ["BrowserController"]
