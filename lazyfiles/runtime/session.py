"""Browsing session: owns the tree, its path index, and background work.

The session is the engine surface consumed by the browser and viewer
controllers. All mutation happens on the host loop thread, either from a
direct call or from a ``TimerQueue`` callback run by ``tick``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..config import EngineConfig
from ..file_tree_model import (
    DirectoryNode,
    FileNode,
    FlatEntry,
    TreeNode,
    TreeSummary,
    build_tree_from_paths,
    ensure_file_node,
    filter_entries,
    flatten_tree,
    is_changed_node,
    new_root,
    node_depth,
    relative_key,
    tree_summary,
    update_tree_stats,
)
from ..git_status import DiffStats, GitStatusProvider, is_change_status, is_untracked_status
from ..ignore import build_ignore_policy
from .line_counts import LineCountCache, LineCountScheduler
from .scan import ScanScheduler, ScanState, should_start_in_safe_mode
from .timers import TimerHandle, TimerQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangedFile:
    """A changed file plus its ancestor directories (root first)."""

    file: FileNode
    ancestors: tuple[DirectoryNode, ...]


class FileTreeSession:
    """Tree state for one browsing session rooted at ``root``."""

    def __init__(
        self,
        root: Path,
        *,
        git: GitStatusProvider | None = None,
        externally_modified: set[Path] | None = None,
        config: EngineConfig | None = None,
        timers: TimerQueue | None = None,
        request_render: Callable[[], None] | None = None,
        home: Path | None = None,
    ) -> None:
        self.root_path = root.resolve()
        self.config = config or EngineConfig()
        self.git = git or GitStatusProvider(timeout_seconds=self.config.git_timeout_seconds)
        self.externally_modified = externally_modified if externally_modified is not None else set()
        self.timers = timers if timers is not None else TimerQueue()
        self._request_render = request_render
        self.ignore_policy = build_ignore_policy(
            self.config.extra_ignored_names,
            self.config.ignored_patterns,
        )
        self.closed = False
        self._poll_timer: TimerHandle | None = None

        self.is_repo = self.git.is_repository(self.root_path)
        self.git_status: dict[str, str] = {}
        self.diff_stats: dict[str, DiffStats] = {}
        self.branch = ""
        if self.is_repo:
            self.git_status = self.git.status_map(self.root_path)
            self.diff_stats = self.git.diff_stats(self.root_path)
            self.branch = self.git.branch_name(self.root_path)
            self.root, self.index = build_tree_from_paths(
                self.root_path,
                self.git.file_list(self.root_path),
                self.git_status,
                self.diff_stats,
                self.ignore_policy,
                self.externally_modified,
                self.config.max_tree_depth,
            )
            self._apply_git_updates()
        else:
            self.root = new_root(self.root_path, scanned=False)
            self.index = {self.root_path: self.root}

        safe_mode = not self.is_repo and should_start_in_safe_mode(self.root_path, home)
        self.scan_state = ScanState(
            mode="none" if self.is_repo else ("safe" if safe_mode else "full"),
            is_partial=safe_mode,
        )
        self.line_count_cache = LineCountCache(self.config.max_line_count_bytes)
        self.line_counts = LineCountScheduler(
            self.line_count_cache,
            self.timers,
            self._after_background_batch,
            batch_size=self.config.line_count_batch_size,
            delay_seconds=self.config.line_count_batch_delay_seconds,
        )
        self.scan = ScanScheduler(
            self.root,
            self.index,
            self.scan_state,
            self.timers,
            self.ignore_policy,
            self.line_counts,
            self._after_background_batch,
            config=self.config,
            externally_modified=self.externally_modified,
        )

        self.visible_entries: list[FlatEntry] = []
        self.all_entries: list[FlatEntry] = []
        update_tree_stats(self.root)
        self.refresh_lists()

        if self.is_repo:
            self.line_counts.queue_tree(self.root)
        else:
            self.scan.enqueue(self.root, 0, force=True)

    @property
    def summary(self) -> TreeSummary:
        return tree_summary(self.root)

    @property
    def busy(self) -> bool:
        """Whether scanning or line counting still has queued work."""
        return self.scan_state.is_scanning or self.line_counts.pending > 0

    def request_render(self) -> None:
        if self._request_render is not None:
            self._request_render()

    def _after_background_batch(self) -> None:
        update_tree_stats(self.root)
        self.refresh_lists()
        self.request_render()

    def refresh_lists(self) -> None:
        """Recompute both projections after a shape or expansion change."""
        self.visible_entries = flatten_tree(self.root)
        self.all_entries = flatten_tree(self.root, include_collapsed=True)

    def get_projection(self, filter_text: str = "", only_changed: bool = False) -> list[FlatEntry]:
        return filter_entries(self.visible_entries, self.all_entries, filter_text, only_changed)

    def node_for_path(self, path: Path) -> TreeNode | None:
        return self.index.get(path)

    def toggle_expand(self, node: TreeNode) -> None:
        """Flip a directory's expansion; plain-directory expands (re)scan it."""
        if not isinstance(node, DirectoryNode):
            return
        node.expanded = not node.expanded
        if node.expanded and not self.is_repo:
            self.scan.enqueue(
                node,
                node_depth(node),
                force=True,
                refresh=node.children is not None,
            )
        self.refresh_lists()

    def ensure_line_count(self, node: TreeNode) -> int | None:
        """Count ``node``'s lines now (cache-backed) and re-aggregate."""
        if not isinstance(node, FileNode):
            return None
        node.line_count = self.line_count_cache.count(node.path)
        update_tree_stats(self.root)
        return node.line_count

    def refresh(self) -> None:
        """Re-fetch git data and apply it to existing nodes in place.

        Newly untracked files get nodes (with missing ancestors). Those files
        and any file whose git state moved or is still changed are re-counted;
        the size and mtime cache keeps unchanged files to a stat.
        Navigation state is handled by ``TreeReconciler``.
        """
        if self.closed:
            return
        if self.is_repo:
            self.git_status = self.git.status_map(self.root_path)
            self.diff_stats = self.git.diff_stats(self.root_path)
            for node in self._apply_git_updates():
                self.line_counts.queue(node, force=True)
            self._add_untracked_nodes()
        self._apply_externally_modified()
        update_tree_stats(self.root)
        self.refresh_lists()

    def _apply_git_updates(self) -> list[FileNode]:
        """Apply the status and stats maps in place.

        Returns files whose git state moved or that are still changed; their
        line counts may be stale.
        """
        stale: list[FileNode] = []
        for node in self.index.values():
            if node is self.root:
                continue
            key = relative_key(self.root_path, node.path)
            status = self.git_status.get(key)
            if isinstance(node, FileNode):
                stats = self.diff_stats.get(key)
                if status != node.git_status or stats != node.diff_stats or is_change_status(status):
                    stale.append(node)
                node.diff_stats = stats
            node.git_status = status
        return stale

    def _add_untracked_nodes(self) -> None:
        for rel_path, status in self.git_status.items():
            if not is_untracked_status(status):
                continue
            node = ensure_file_node(
                self.root,
                self.index,
                rel_path,
                self.ignore_policy,
                self.config.max_tree_depth,
            )
            if node is None:
                continue
            node.git_status = status
            node.diff_stats = self.diff_stats.get(rel_path)
            node.externally_modified = node.path in self.externally_modified
            self.line_counts.queue(node, force=True)

    def _apply_externally_modified(self) -> None:
        for node in self.index.values():
            if isinstance(node, FileNode):
                node.externally_modified = node.path in self.externally_modified

    def changed_files(self) -> list[ChangedFile]:
        """Return changed files in tree order with their ancestor chains."""
        results: list[ChangedFile] = []

        def walk(directory: DirectoryNode, ancestors: tuple[DirectoryNode, ...]) -> None:
            chain = ancestors + (directory,)
            for child in directory.children or ():
                if isinstance(child, DirectoryNode):
                    walk(child, chain)
                elif is_changed_node(child):
                    results.append(ChangedFile(file=child, ancestors=chain))

        walk(self.root, ())
        return results

    def collapse_all_except(self, keep: set[Path]) -> None:
        stack: list[DirectoryNode] = [self.root]
        while stack:
            directory = stack.pop()
            if directory is not self.root:
                directory.expanded = directory.path in keep
            for child in directory.children or ():
                if isinstance(child, DirectoryNode):
                    stack.append(child)
        self.refresh_lists()

    def start_polling(self, on_poll: Callable[[], None]) -> None:
        """Run ``on_poll`` every poll interval while version-controlled."""
        if not self.is_repo or self.closed or self._poll_timer is not None:
            return
        logger.debug("polling git status every %ss", self.config.poll_interval_seconds)

        def poll() -> None:
            self._poll_timer = None
            if self.closed:
                return
            on_poll()
            self.request_render()
            if not self.closed:
                self._poll_timer = self.timers.call_later(self.config.poll_interval_seconds, poll)

        self._poll_timer = self.timers.call_later(self.config.poll_interval_seconds, poll)

    def tick(self) -> int:
        """Run due background callbacks; call from the host loop."""
        if self.closed:
            return 0
        return self.timers.run_due()

    def close(self) -> None:
        """Stop all background work for this session."""
        self.closed = True
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None
        self.scan.cancel()
        self.line_counts.cancel()


__all__ = ["ChangedFile", "FileTreeSession"]
