"""Git status, diff-stat, and file-list queries for the tree engine.

Every query shells out to ``git`` with a bounded timeout. Failures of any kind
(git missing, not a repository, non-zero exit, timeout) degrade to empty
results so a poll cycle can never raise past this module.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .config import GIT_PROBE_TIMEOUT_SECONDS, GIT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiffStats:
    """Added/removed line counts reported by git for one path."""

    added: int = 0
    removed: int = 0


def is_untracked_status(status: str | None) -> bool:
    return status in {"?", "??"}


def is_ignored_status(status: str | None) -> bool:
    return status in {"!", "!!"}


def is_change_status(status: str | None) -> bool:
    """Return whether ``status`` marks a real change (ignored entries do not)."""
    return bool(status) and not is_ignored_status(status)


def _run_git(root: Path, args: list[str], timeout_seconds: float) -> str | None:
    """Run ``git -C root *args`` and return stdout, or ``None`` on any failure.

    ``subprocess.run`` kills the child when ``timeout_seconds`` elapses, so a
    hung git process is abandoned rather than waited on.
    """
    try:
        proc = subprocess.run(
            ["git", "-C", str(root), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git %s failed in %s: %s", " ".join(args), root, exc)
        return None
    if proc.returncode != 0:
        logger.debug("git %s exited %d in %s", " ".join(args), proc.returncode, root)
        return None
    return proc.stdout


def _iter_porcelain_records(output: str) -> list[tuple[str, str]]:
    """Parse ``git status --porcelain=v1 -z`` output into ``(code, path)``.

    Renamed/copied records carry an extra NUL-separated source path; the first
    path token is the destination and is the one reported.
    """
    records: list[tuple[str, str]] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if len(token) < 4 or token[2] != " ":
            continue

        raw_status = token[:2]
        path_text = token[3:]
        records.append((raw_status.strip() or "?", path_text))

        if "R" in raw_status or "C" in raw_status:
            index += 1

    return records


def _parse_numstat(output: str) -> list[tuple[str, DiffStats]]:
    """Parse ``git diff --numstat -z --no-renames`` records.

    Binary files report ``-`` for both counts and are treated as zero.
    """
    rows: list[tuple[str, DiffStats]] = []
    for record in output.split("\0"):
        parts = record.strip("\n").split("\t", 2)
        if len(parts) < 3 or not parts[2]:
            continue
        try:
            added = int(parts[0])
        except ValueError:
            added = 0
        try:
            removed = int(parts[1])
        except ValueError:
            removed = 0
        rows.append((parts[2], DiffStats(added=added, removed=removed)))
    return rows


class GitStatusProvider:
    """Stateless git query facade; every method is a pure function of ``root``."""

    def __init__(
        self,
        timeout_seconds: float = GIT_TIMEOUT_SECONDS,
        probe_timeout_seconds: float = GIT_PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.probe_timeout_seconds = probe_timeout_seconds

    def is_repository(self, root: Path) -> bool:
        output = _run_git(root, ["rev-parse", "--is-inside-work-tree"], self.probe_timeout_seconds)
        return output is not None and output.strip() == "true"

    def branch_name(self, root: Path) -> str:
        output = _run_git(root, ["branch", "--show-current"], self.probe_timeout_seconds)
        return output.strip() if output is not None else ""

    def status_map(self, root: Path, include_ignored: bool = True) -> dict[str, str]:
        """Return ``{relative posix path: status code}``.

        Untracked directories are expanded to their files (``-uall``) so every
        key names a file. Ignored directories are reported once
        (``--ignored=matching``), keyed without the trailing slash.
        """
        args = ["status", "--porcelain=v1", "-z", "--untracked-files=all"]
        if include_ignored:
            args.append("--ignored=matching")
        output = _run_git(root, args, self.timeout_seconds)
        if output is None:
            return {}
        status: dict[str, str] = {}
        for code, rel_path in _iter_porcelain_records(output):
            rel_path = rel_path.rstrip("/")
            if rel_path:
                status[rel_path] = code
        return status

    def diff_stats(self, root: Path) -> dict[str, DiffStats]:
        """Return unstaged (worktree vs index) plus staged added/removed counts per path."""
        stats: dict[str, DiffStats] = {}
        for args in (
            ["diff", "--numstat", "-z", "--no-renames"],
            ["diff", "--numstat", "-z", "--no-renames", "--cached"],
        ):
            output = _run_git(root, args, self.timeout_seconds)
            if output is None:
                continue
            for rel_path, row in _parse_numstat(output):
                existing = stats.get(rel_path)
                if existing is None:
                    stats[rel_path] = row
                else:
                    stats[rel_path] = DiffStats(
                        added=existing.added + row.added,
                        removed=existing.removed + row.removed,
                    )
        return stats

    def file_list(self, root: Path) -> list[str]:
        """Return tracked files plus every path named by ``git status``."""
        files: dict[str, None] = {}
        tracked = _run_git(root, ["ls-files", "-z"], self.timeout_seconds)
        if tracked is not None:
            for entry in tracked.split("\0"):
                if entry:
                    files[entry] = None
        status_output = _run_git(
            root,
            ["status", "--porcelain=v1", "-z", "--untracked-files=all"],
            self.timeout_seconds,
        )
        if status_output is not None:
            for _code, rel_path in _iter_porcelain_records(status_output):
                if rel_path:
                    files[rel_path] = None
        return list(files)

    def file_diff(self, root: Path, path: Path) -> str:
        """Return a unified diff for ``path``: unstaged, else staged, else vs HEAD."""
        target = str(path)
        for args in (
            ["diff", "--", target],
            ["diff", "--cached", "--", target],
            ["diff", "HEAD", "--", target],
        ):
            output = _run_git(root, args, self.timeout_seconds)
            if output and output.strip():
                return output
        return ""


__all__ = [
    "DiffStats",
    "GitStatusProvider",
    "is_change_status",
    "is_ignored_status",
    "is_untracked_status",
]
