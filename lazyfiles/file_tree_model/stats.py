"""Bottom-up aggregation of line counts and diff stats."""

from __future__ import annotations

from ..git_status import is_change_status
from .types import DirectoryNode, FileNode, Totals, TreeSummary


def _file_totals(node: FileNode) -> tuple[Totals, bool]:
    stats = node.diff_stats
    totals = Totals(
        lines=node.line_count or 0,
        added=stats.added if stats is not None else 0,
        removed=stats.removed if stats is not None else 0,
        complete=node.line_count is not None,
    )
    return totals, is_change_status(node.git_status) or node.externally_modified


def update_tree_stats(root: DirectoryNode | None) -> None:
    """Recompute ``totals`` and ``has_changed_descendant`` for every directory.

    A directory's totals are the sum of its children's own (files) or
    aggregated (directories) figures. ``complete`` is false when any
    descendant file has an unknown line count. Unscanned directories
    contribute nothing and count as complete.
    """
    if root is None:
        return

    # Post-order: a directory is folded once all of its children have been.
    order: list[DirectoryNode] = []
    stack: list[DirectoryNode] = [root]
    while stack:
        directory = stack.pop()
        order.append(directory)
        for child in directory.children or ():
            if isinstance(child, DirectoryNode):
                stack.append(child)

    for directory in reversed(order):
        totals = Totals()
        has_changes = False
        for child in directory.children or ():
            if isinstance(child, FileNode):
                child_totals, child_changed = _file_totals(child)
            else:
                child_totals, child_changed = child.totals, child.has_changed_descendant
            totals.lines += child_totals.lines
            totals.added += child_totals.added
            totals.removed += child_totals.removed
            totals.complete = totals.complete and child_totals.complete
            has_changes = has_changes or child_changed
        directory.totals = totals
        directory.has_changed_descendant = has_changes


def tree_summary(root: DirectoryNode | None) -> TreeSummary:
    """Return header figures; ``total_lines`` is ``None`` until complete."""
    if root is None:
        return TreeSummary(total_lines=None, added=0, removed=0)
    totals = root.totals
    return TreeSummary(
        total_lines=totals.lines if totals.complete else None,
        added=totals.added,
        removed=totals.removed,
    )


__all__ = ["tree_summary", "update_tree_stats"]
