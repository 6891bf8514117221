"""Domain model for the browsed file tree.

This package contains non-UI tree primitives:
- mutable file/directory node datatypes
- filesystem listing and stat helpers
- eager construction and sorted insertion
- bottom-up stats aggregation
- flattened projections for display
"""

from __future__ import annotations

from .types import DiffStats, DirectoryNode, FileNode, FlatEntry, Totals, TreeNode, TreeSummary
from .fs import DirectoryChild, FileStat, list_directory_children, stat_file
from .build import (
    build_tree_from_paths,
    ensure_file_node,
    index_nodes,
    insert_child,
    new_root,
    node_depth,
    node_sort_key,
    relative_key,
    split_relative_path,
)
from .stats import tree_summary, update_tree_stats
from .flatten import filter_entries, flatten_tree, is_changed_node

__all__ = [
    "DiffStats",
    "DirectoryNode",
    "FileNode",
    "FlatEntry",
    "Totals",
    "TreeNode",
    "TreeSummary",
    "DirectoryChild",
    "FileStat",
    "list_directory_children",
    "stat_file",
    "build_tree_from_paths",
    "ensure_file_node",
    "index_nodes",
    "insert_child",
    "new_root",
    "node_depth",
    "node_sort_key",
    "relative_key",
    "split_relative_path",
    "tree_summary",
    "update_tree_stats",
    "filter_entries",
    "flatten_tree",
    "is_changed_node",
]
