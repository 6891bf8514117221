"""Memoized per-file line counts and their batched background scheduler."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..config import LINE_COUNT_BATCH_DELAY_SECONDS, LINE_COUNT_BATCH_SIZE, MAX_LINE_COUNT_BYTES
from ..file_tree_model import DirectoryNode, FileNode, TreeNode, stat_file
from .timers import TimerHandle, TimerQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineCountCacheEntry:
    size: int
    mtime_ns: int
    count: int


def _read_file_bytes(path: Path, limit: int) -> bytes:
    """Read at most ``limit`` bytes from ``path``."""
    with path.open("rb") as handle:
        return handle.read(limit)


def count_lines(data: bytes) -> int:
    """Count lines the way an editor shows them (no phantom trailing line)."""
    return len(data.decode("utf-8", errors="replace").splitlines())


class LineCountCache:
    """Line counts keyed by path, invalidated by size or mtime change."""

    def __init__(self, max_bytes: int = MAX_LINE_COUNT_BYTES) -> None:
        self.max_bytes = max_bytes
        self._entries: dict[Path, LineCountCacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, path: Path) -> LineCountCacheEntry | None:
        return self._entries.get(path)

    def count(self, path: Path) -> int | None:
        """Return the line count for ``path`` or ``None`` when unknown.

        Files above ``max_bytes`` are skipped without being read, and a file
        that grows past it before the read is treated as unknown. Any I/O
        failure yields ``None``.
        """
        file_stat = stat_file(path)
        if file_stat is None:
            return None
        if file_stat.size > self.max_bytes:
            return None
        cached = self._entries.get(path)
        if cached is not None and cached.size == file_stat.size and cached.mtime_ns == file_stat.mtime_ns:
            return cached.count
        try:
            data = _read_file_bytes(path, self.max_bytes + 1)
        except OSError as exc:
            logger.debug("cannot read %s for line count: %s", path, exc)
            return None
        if len(data) > self.max_bytes:
            # grew past the ceiling after the stat
            return None
        count = count_lines(data)
        self._entries[path] = LineCountCacheEntry(
            size=file_stat.size,
            mtime_ns=file_stat.mtime_ns,
            count=count,
        )
        return count

    def clear(self) -> None:
        self._entries.clear()


class LineCountScheduler:
    """Count queued files a few at a time on the shared timer queue.

    Each file is queued at most once at a time. After every batch
    ``on_batch`` runs so the owner can re-aggregate stats and re-render.
    """

    def __init__(
        self,
        cache: LineCountCache,
        timers: TimerQueue,
        on_batch: Callable[[], None],
        *,
        batch_size: int = LINE_COUNT_BATCH_SIZE,
        delay_seconds: float = LINE_COUNT_BATCH_DELAY_SECONDS,
    ) -> None:
        self.cache = cache
        self._timers = timers
        self._on_batch = on_batch
        self.batch_size = max(1, batch_size)
        self.delay_seconds = delay_seconds
        self._queue: deque[FileNode] = deque()
        self._pending: set[Path] = set()
        self._timer: TimerHandle | None = None

    @property
    def pending(self) -> int:
        return len(self._pending)

    def queue(self, node: FileNode, force: bool = False) -> bool:
        """Queue ``node``; returns whether it was newly queued."""
        if not force and node.line_count is not None:
            return False
        if node.path in self._pending:
            return False
        self._pending.add(node.path)
        self._queue.append(node)
        if self._timer is None:
            self._timer = self._timers.call_later(self.delay_seconds, self._process_batch)
        return True

    def queue_tree(self, root: DirectoryNode | None, force: bool = False) -> None:
        if root is None:
            return
        stack: list[TreeNode] = [root]
        while stack:
            node = stack.pop()
            if isinstance(node, DirectoryNode):
                stack.extend(node.children or ())
            else:
                self.queue(node, force=force)

    def _process_batch(self) -> None:
        self._timer = None
        batch: list[FileNode] = []
        while self._queue and len(batch) < self.batch_size:
            batch.append(self._queue.popleft())
        if not batch:
            return

        for node in batch:
            node.line_count = self.cache.count(node.path)
            self._pending.discard(node.path)

        self._on_batch()

        if self._queue:
            self._timer = self._timers.call_later(self.delay_seconds, self._process_batch)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._queue.clear()
        self._pending.clear()


__all__ = [
    "LineCountCache",
    "LineCountCacheEntry",
    "LineCountScheduler",
    "count_lines",
]
