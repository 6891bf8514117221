"""Tree construction: eager build from a file list plus sorted insertion.

Version-controlled projects are built eagerly from git's file list.
Plain directories start from an unscanned root and are filled in by the scan
scheduler through ``insert_child``.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Mapping
from pathlib import Path

from ..git_status import DiffStats
from ..ignore import IgnorePolicy
from .types import DirectoryNode, FileNode, TreeNode


def node_sort_key(node: TreeNode) -> tuple[bool, str, str]:
    """Sort directories before files, then by case-insensitive name."""
    return (not node.is_dir, node.name.casefold(), node.name)


def insert_child(parent: DirectoryNode, child: TreeNode) -> None:
    """Insert ``child`` at its sorted position without reordering siblings."""
    if parent.children is None:
        parent.children = []
    bisect.insort(parent.children, child, key=node_sort_key)


def new_root(root: Path, *, scanned: bool) -> DirectoryNode:
    """Return an expanded root node; unscanned roots have ``children=None``."""
    return DirectoryNode(
        path=root,
        name=root.name or str(root),
        children=[] if scanned else None,
        expanded=True,
    )


def split_relative_path(raw_path: str) -> list[str]:
    """Normalize a repo-relative path into its non-empty segments."""
    normalized = raw_path.strip().replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return [part for part in normalized.split("/") if part and part != "."]


def relative_key(root: Path, path: Path) -> str:
    """Return the posix path of ``path`` relative to ``root`` (git map key)."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def node_depth(node: TreeNode) -> int:
    """Return distance from the root (root is depth 0)."""
    depth = 0
    parent = node.parent
    while parent is not None:
        depth += 1
        parent = parent.parent
    return depth


def index_nodes(root: DirectoryNode) -> dict[Path, TreeNode]:
    """Build a path->node index for every node in the tree."""
    index: dict[Path, TreeNode] = {}
    stack: list[TreeNode] = [root]
    while stack:
        node = stack.pop()
        index[node.path] = node
        if node.is_dir and node.children:
            stack.extend(node.children)
    return index


def ensure_file_node(
    root: DirectoryNode,
    index: dict[Path, TreeNode],
    rel_path: str,
    ignore_policy: IgnorePolicy,
    max_depth: int,
) -> FileNode | None:
    """Return the file node for ``rel_path``, creating it and its ancestors.

    Paths nested deeper than ``max_depth`` directories, paths through an
    ignored segment, and paths clashing with an existing node of the other
    kind are dropped and return ``None``. Created ancestors are marked as
    scanned because git's file list is authoritative for them.
    """
    parts = split_relative_path(rel_path)
    if not parts or len(parts) - 1 > max_depth:
        return None
    if ignore_policy.is_ignored_path(parts):
        return None

    current = root
    for part in parts[:-1]:
        dir_path = current.path / part
        existing = index.get(dir_path)
        if existing is None:
            created = DirectoryNode(path=dir_path, name=part, parent=current, children=[])
            insert_child(current, created)
            index[dir_path] = created
            current = created
        elif isinstance(existing, DirectoryNode):
            current = existing
        else:
            return None

    file_path = current.path / parts[-1]
    existing = index.get(file_path)
    if existing is not None:
        return existing if isinstance(existing, FileNode) else None

    node = FileNode(path=file_path, name=parts[-1], parent=current)
    insert_child(current, node)
    index[file_path] = node
    return node


def build_tree_from_paths(
    root_path: Path,
    file_paths: Iterable[str],
    git_status: Mapping[str, str],
    diff_stats: Mapping[str, DiffStats],
    ignore_policy: IgnorePolicy,
    externally_modified: set[Path],
    max_depth: int,
) -> tuple[DirectoryNode, dict[Path, TreeNode]]:
    """Eagerly build a fully-scanned tree from repo-relative file paths.

    Returns the root node and the path index covering every created node.
    Aggregates are not computed here; callers run ``update_tree_stats``.
    """
    root = new_root(root_path, scanned=True)
    index: dict[Path, TreeNode] = {root_path: root}
    for rel_path in file_paths:
        node = ensure_file_node(root, index, rel_path, ignore_policy, max_depth)
        if node is None:
            continue
        key = "/".join(split_relative_path(rel_path))
        node.git_status = git_status.get(key)
        node.diff_stats = diff_stats.get(key)
        node.externally_modified = node.path in externally_modified
    return root, index


__all__ = [
    "build_tree_from_paths",
    "ensure_file_node",
    "index_nodes",
    "insert_child",
    "new_root",
    "node_depth",
    "node_sort_key",
    "relative_key",
    "split_relative_path",
]
