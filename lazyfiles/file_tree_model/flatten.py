"""Tree projections for browsing and searching.

``flatten_tree`` produces the ordered row list; ``filter_entries`` applies the
browser's "only changed" toggle and name filter on top of it.
"""

from __future__ import annotations

from ..git_status import is_change_status
from .types import DirectoryNode, FlatEntry, TreeNode


def flatten_tree(root: DirectoryNode | None, include_collapsed: bool = False) -> list[FlatEntry]:
    """Return depth-first rows below ``root`` (the root itself is excluded).

    Visible mode stops at collapsed directories; ``include_collapsed`` walks
    into every scanned directory so a name filter can reach the whole tree.
    """
    entries: list[FlatEntry] = []
    if root is None:
        return entries

    def walk(directory: DirectoryNode, depth: int) -> None:
        for child in directory.children or ():
            entries.append(FlatEntry(child, depth))
            if isinstance(child, DirectoryNode) and (include_collapsed or child.expanded):
                walk(child, depth + 1)

    walk(root, 0)
    return entries


def is_changed_node(node: TreeNode) -> bool:
    if isinstance(node, DirectoryNode):
        return node.has_changed_descendant or is_change_status(node.git_status)
    return is_change_status(node.git_status) or node.externally_modified


def filter_entries(
    visible: list[FlatEntry],
    full: list[FlatEntry],
    filter_text: str = "",
    only_changed: bool = False,
) -> list[FlatEntry]:
    """Return the display list for the current filter state.

    The full projection is used only while ``filter_text`` is non-empty.
    """
    entries = full if filter_text else visible
    if only_changed:
        entries = [entry for entry in entries if is_changed_node(entry.node)]
    if filter_text:
        needle = filter_text.casefold()
        entries = [entry for entry in entries if needle in entry.node.name.casefold()]
    return entries


__all__ = ["filter_entries", "flatten_tree", "is_changed_node"]
