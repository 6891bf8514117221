"""Periodic refresh that keeps navigation state stable across tree updates.

Selection, expansion, and the viewer's open file are remembered by path and
re-resolved against the refreshed tree, so a poll never moves the cursor off
the row the user was looking at unless that row disappeared.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from ..file_tree_model import DirectoryNode, FileNode
from ..state import BrowserCursor
from .session import FileTreeSession


class ViewerLike(Protocol):
    is_open: bool
    file: FileNode | None

    def update_file_ref(self, node: FileNode) -> None: ...


def capture_expanded(root: DirectoryNode) -> set[Path]:
    """Return paths of every expanded directory below ``root``."""
    expanded: set[Path] = set()
    stack: list[DirectoryNode] = [root]
    while stack:
        directory = stack.pop()
        if directory.expanded and directory is not root:
            expanded.add(directory.path)
        for child in directory.children or ():
            if isinstance(child, DirectoryNode):
                stack.append(child)
    return expanded


def restore_expanded(root: DirectoryNode, expanded: set[Path]) -> None:
    """Expand exactly the directories in ``expanded``; the root stays open."""
    stack: list[DirectoryNode] = [root]
    while stack:
        directory = stack.pop()
        if directory is not root:
            directory.expanded = directory.path in expanded
        for child in directory.children or ():
            if isinstance(child, DirectoryNode):
                stack.append(child)


class TreeReconciler:
    """Refresh a session and remap the browser cursor and viewer by path."""

    def __init__(
        self,
        session: FileTreeSession,
        cursor: BrowserCursor,
        viewer: ViewerLike | None = None,
    ) -> None:
        self.session = session
        self.cursor = cursor
        self.viewer = viewer

    def _projection(self):
        return self.session.get_projection(self.cursor.search_query, self.cursor.show_only_changed)

    def selected_path(self) -> Path | None:
        entries = self._projection()
        if 0 <= self.cursor.selected_index < len(entries):
            return entries[self.cursor.selected_index].node.path
        return None

    def reconcile(self) -> None:
        if self.session.closed:
            return
        selected = self.selected_path()
        viewer_file = None
        if self.viewer is not None and self.viewer.is_open and self.viewer.file is not None:
            viewer_file = self.viewer.file
        expanded = capture_expanded(self.session.root)

        self.session.refresh()

        restore_expanded(self.session.root, expanded)
        self.session.refresh_lists()

        entries = self._projection()
        index = None
        if selected is not None:
            for i, entry in enumerate(entries):
                if entry.node.path == selected:
                    index = i
                    break
        if index is None:
            index = min(self.cursor.selected_index, len(entries) - 1)
        self.cursor.selected_index = max(0, index)

        if viewer_file is not None:
            node = self.session.node_for_path(viewer_file.path)
            if isinstance(node, FileNode):
                if node.line_count is None and viewer_file.line_count is not None:
                    node.line_count = viewer_file.line_count
                self.viewer.update_file_ref(node)


__all__ = ["TreeReconciler", "ViewerLike", "capture_expanded", "restore_expanded"]
