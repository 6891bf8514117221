"""Mutable node datatypes for the browsed file tree.

Nodes compare by identity: refreshes mutate fields in place so references
held by the projection and the viewer stay valid across polls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

from ..git_status import DiffStats


@dataclass
class Totals:
    """Aggregated figures rolled up from every descendant file."""

    lines: int = 0
    added: int = 0
    removed: int = 0
    complete: bool = True


@dataclass(eq=False)
class _NodeBase:
    path: Path
    name: str
    parent: DirectoryNode | None = field(default=None, repr=False)
    git_status: str | None = None
    externally_modified: bool = False


@dataclass(eq=False)
class FileNode(_NodeBase):
    """File leaf. ``line_count is None`` means unknown or skipped."""

    line_count: int | None = None
    diff_stats: DiffStats | None = None

    is_dir: ClassVar[bool] = False


@dataclass(eq=False)
class DirectoryNode(_NodeBase):
    """Directory node.

    ``children is None`` means the directory has not been scanned yet;
    ``children == []`` means it was scanned and is empty.
    """

    children: list[TreeNode] | None = None
    expanded: bool = False
    loading: bool = False
    totals: Totals = field(default_factory=Totals)
    has_changed_descendant: bool = False

    is_dir: ClassVar[bool] = True


TreeNode = DirectoryNode | FileNode


@dataclass(frozen=True)
class FlatEntry:
    """One projected row: a node plus its display depth."""

    node: TreeNode
    depth: int


@dataclass(frozen=True)
class TreeSummary:
    """Root-level figures for the browser header."""

    total_lines: int | None
    added: int
    removed: int


__all__ = [
    "DiffStats",
    "DirectoryNode",
    "FileNode",
    "FlatEntry",
    "Totals",
    "TreeNode",
    "TreeSummary",
]
