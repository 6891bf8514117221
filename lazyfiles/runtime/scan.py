"""Batched, rate-limited directory scanning for lazily built trees.

Directories move through ``unscanned -> loading -> scanned``. A FIFO queue
plus a queued-path set keeps at most one pending scan per directory; a timer
callback drains a few tasks per tick so the render loop is blocked for at
most one batch of directory listings.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from ..config import EngineConfig
from ..file_tree_model import (
    DirectoryNode,
    FileNode,
    TreeNode,
    insert_child,
    list_directory_children,
)
from ..ignore import IgnorePolicy
from .line_counts import LineCountScheduler
from .timers import TimerHandle, TimerQueue

logger = logging.getLogger(__name__)

ScanMode = Literal["full", "safe", "none"]


@dataclass
class ScanState:
    """Scan progress surfaced to the browser header."""

    mode: ScanMode = "full"
    is_scanning: bool = False
    is_partial: bool = False
    pending: int = 0
    spinner_index: int = 0


@dataclass(frozen=True)
class ScanTask:
    node: DirectoryNode
    depth: int
    forced: bool = False


def should_start_in_safe_mode(root: Path, home: Path | None = None) -> bool:
    """Return whether ``root`` is the home directory or a filesystem root."""
    resolved = root.resolve()
    home_dir = (home if home is not None else Path.home()).resolve()
    return resolved == home_dir or resolved == Path(resolved.anchor)


class ScanScheduler:
    """Fill unscanned directories in small timer-driven batches.

    Safe mode (home directory, filesystem root, or a root listing at least
    ``safe_mode_entry_threshold`` entries) scans one directory per tick, only
    the root automatically, with a longer delay, and flags results partial.
    """

    def __init__(
        self,
        root: DirectoryNode,
        index: dict[Path, TreeNode],
        state: ScanState,
        timers: TimerQueue,
        ignore_policy: IgnorePolicy,
        line_counts: LineCountScheduler,
        on_batch: Callable[[], None],
        *,
        config: EngineConfig,
        externally_modified: set[Path],
    ) -> None:
        self.root = root
        self.index = index
        self.state = state
        self._timers = timers
        self._ignore_policy = ignore_policy
        self._line_counts = line_counts
        self._on_batch = on_batch
        self._config = config
        self._externally_modified = externally_modified
        self._queue: deque[ScanTask] = deque()
        self._queued: set[Path] = set()
        self._timer: TimerHandle | None = None

    @property
    def batch_size(self) -> int:
        return 1 if self.state.mode == "safe" else max(1, self._config.scan_batch_size)

    @property
    def delay_seconds(self) -> float:
        delay = self._config.scan_batch_delay_seconds
        if self.state.mode == "safe":
            return delay * self._config.safe_mode_delay_factor
        return delay

    def is_queued(self, path: Path) -> bool:
        return path in self._queued

    def should_auto_scan(self, depth: int) -> bool:
        if self.state.mode == "safe":
            return depth <= 0
        return depth <= self._config.max_tree_depth

    def enqueue(
        self,
        node: DirectoryNode,
        depth: int,
        force: bool = False,
        refresh: bool = False,
    ) -> bool:
        """Queue ``node`` for scanning; returns whether it was queued.

        ``refresh`` re-lists an already scanned directory and merges new
        entries without touching existing nodes.
        """
        if depth > self._config.max_tree_depth:
            return False
        if not force and self.state.mode == "safe" and depth > 0:
            return False
        if node.loading or node.path in self._queued:
            return False
        if node.children is not None and not refresh:
            return False

        node.loading = True
        self._queued.add(node.path)
        self._queue.append(ScanTask(node=node, depth=depth, forced=force))
        self.state.pending = len(self._queue)
        self.state.is_scanning = True
        if self._timer is None:
            self._timer = self._timers.call_later(self.delay_seconds, self._process_batch)
        return True

    def enter_safe_mode(self, reason: str) -> None:
        """Switch to throttled scanning and drop queued automatic work."""
        if self.state.mode == "safe":
            return
        logger.info("entering safe scan mode for %s: %s", self.root.path, reason)
        self.state.mode = "safe"
        self.state.is_partial = True
        self._drop_queue()

    def _drop_queue(self) -> None:
        for task in self._queue:
            task.node.loading = False
        self._queue.clear()
        self._queued.clear()
        self.state.pending = 0

    def _process_batch(self) -> None:
        self._timer = None
        batch: list[ScanTask] = []
        while self._queue and len(batch) < self.batch_size:
            batch.append(self._queue.popleft())
        if not batch:
            self.state.is_scanning = False
            self.state.pending = 0
            return

        for task in batch:
            if self.state.mode == "safe" and task.depth > 0 and not task.forced:
                task.node.loading = False
                self._queued.discard(task.node.path)
                continue
            self._scan_directory(task)

        self.state.pending = len(self._queue)
        self.state.is_scanning = bool(self._queue)
        self._on_batch()

        if self._queue:
            self._timer = self._timers.call_later(self.delay_seconds, self._process_batch)

    def _scan_directory(self, task: ScanTask) -> None:
        node = task.node
        try:
            children, raw_entry_count, scan_error = list_directory_children(
                node.path,
                self._ignore_policy.is_ignored,
            )
            if scan_error is not None:
                if node.children is None:
                    node.children = []
                return

            if (
                node is self.root
                and self.state.mode == "full"
                and raw_entry_count >= self._config.safe_mode_entry_threshold
            ):
                self.enter_safe_mode(f"{raw_entry_count} top-level entries")

            if node.children is None:
                node.children = []

            child_depth = task.depth + 1
            for child in children:
                existing = self.index.get(child.path)
                if existing is not None:
                    if isinstance(existing, FileNode):
                        self._line_counts.queue(existing, force=True)
                    continue

                if child.is_dir:
                    dir_node = DirectoryNode(path=child.path, name=child.name, parent=node)
                    insert_child(node, dir_node)
                    self.index[child.path] = dir_node
                    if self.should_auto_scan(child_depth):
                        self.enqueue(dir_node, child_depth)
                else:
                    file_node = FileNode(
                        path=child.path,
                        name=child.name,
                        parent=node,
                        externally_modified=child.path in self._externally_modified,
                    )
                    insert_child(node, file_node)
                    self.index[child.path] = file_node
                    self._line_counts.queue(file_node)
        finally:
            node.loading = False
            self._queued.discard(node.path)

    def cancel(self) -> None:
        """Clear the pending timer and queued work; nothing resumes later."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._drop_queue()
        self.state.is_scanning = False


__all__ = [
    "ScanMode",
    "ScanScheduler",
    "ScanState",
    "ScanTask",
    "should_start_in_safe_mode",
]
