"""Tests for git query parsing and failure degradation."""

from __future__ import annotations

import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazyfiles import git_status
from lazyfiles.git_status import (
    DiffStats,
    GitStatusProvider,
    is_change_status,
    is_ignored_status,
    is_untracked_status,
)


def _fake_git(outputs: dict[tuple[str, ...], str | None]):
    def run_git(_root: Path, args: list[str], _timeout: float) -> str | None:
        return outputs.get(tuple(args))

    return run_git


STATUS_ARGS = ("status", "--porcelain=v1", "-z", "--untracked-files=all")


class StatusHelperTests(unittest.TestCase):
    def test_status_predicates(self) -> None:
        self.assertTrue(is_untracked_status("??"))
        self.assertTrue(is_ignored_status("!!"))
        self.assertTrue(is_change_status("M"))
        self.assertTrue(is_change_status("??"))
        self.assertFalse(is_change_status("!!"))
        self.assertFalse(is_change_status(None))
        self.assertFalse(is_change_status(""))

    def test_porcelain_records_report_rename_destination(self) -> None:
        output = " M src/b.ts\0R  new.txt\0old.txt\0?? src/a.ts\0!! build/\0"
        records = git_status._iter_porcelain_records(output)
        self.assertEqual(
            records,
            [("M", "src/b.ts"), ("R", "new.txt"), ("??", "src/a.ts"), ("!!", "build/")],
        )

    def test_numstat_treats_binary_counts_as_zero(self) -> None:
        rows = git_status._parse_numstat("3\t1\tsrc/b.ts\0-\t-\tlogo.png\0")
        self.assertEqual(
            rows,
            [("src/b.ts", DiffStats(3, 1)), ("logo.png", DiffStats(0, 0))],
        )


class GitStatusProviderTests(unittest.TestCase):
    def test_status_map_strips_directory_slash(self) -> None:
        outputs = {
            STATUS_ARGS + ("--ignored=matching",): " M src/b.ts\0?? src/a.ts\0!! build/\0",
        }
        with mock.patch("lazyfiles.git_status._run_git", side_effect=_fake_git(outputs)):
            status = GitStatusProvider().status_map(Path("/repo"))
        self.assertEqual(status, {"src/b.ts": "M", "src/a.ts": "??", "build": "!!"})

    def test_status_map_failure_yields_empty_map(self) -> None:
        with mock.patch("lazyfiles.git_status._run_git", return_value=None):
            self.assertEqual(GitStatusProvider().status_map(Path("/repo")), {})

    def test_diff_stats_sums_unstaged_and_staged_entries(self) -> None:
        outputs = {
            ("diff", "--numstat", "-z", "--no-renames"): "3\t1\tsrc/b.ts\0",
            ("diff", "--numstat", "-z", "--no-renames", "--cached"): "2\t0\tsrc/b.ts\x005\t0\tnew.ts\x00",
        }
        with mock.patch("lazyfiles.git_status._run_git", side_effect=_fake_git(outputs)):
            stats = GitStatusProvider().diff_stats(Path("/repo"))
        self.assertEqual(stats, {"src/b.ts": DiffStats(5, 1), "new.ts": DiffStats(5, 0)})

    def test_diff_stats_keeps_staged_counts_when_unstaged_query_fails(self) -> None:
        outputs = {
            ("diff", "--numstat", "-z", "--no-renames"): None,
            ("diff", "--numstat", "-z", "--no-renames", "--cached"): "4\t0\tfirst.txt\0",
        }
        with mock.patch("lazyfiles.git_status._run_git", side_effect=_fake_git(outputs)):
            stats = GitStatusProvider().diff_stats(Path("/repo"))
        self.assertEqual(stats, {"first.txt": DiffStats(4, 0)})

    def test_file_list_merges_tracked_and_status_paths_in_order(self) -> None:
        outputs = {
            ("ls-files", "-z"): "README.md\0src/b.ts\0",
            STATUS_ARGS: " M src/b.ts\0?? src/a.ts\0R  moved.txt\0orig.txt\0",
        }
        with mock.patch("lazyfiles.git_status._run_git", side_effect=_fake_git(outputs)):
            files = GitStatusProvider().file_list(Path("/repo"))
        self.assertEqual(files, ["README.md", "src/b.ts", "src/a.ts", "moved.txt"])

    def test_run_git_degrades_on_missing_binary_and_timeout(self) -> None:
        with mock.patch("lazyfiles.git_status.subprocess.run", side_effect=FileNotFoundError("git")):
            self.assertIsNone(git_status._run_git(Path("/repo"), ["status"], 1.0))
        with mock.patch(
            "lazyfiles.git_status.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git", timeout=1.0),
        ):
            self.assertIsNone(git_status._run_git(Path("/repo"), ["status"], 1.0))

    def test_run_git_treats_nonzero_exit_as_failure(self) -> None:
        failed = subprocess.CompletedProcess(args=["git"], returncode=128, stdout="fatal")
        with mock.patch("lazyfiles.git_status.subprocess.run", return_value=failed):
            self.assertIsNone(git_status._run_git(Path("/repo"), ["status"], 1.0))

    def test_non_repository_directory_is_reported(self) -> None:
        with mock.patch("lazyfiles.git_status._run_git", return_value=None):
            provider = GitStatusProvider()
            self.assertFalse(provider.is_repository(Path("/somewhere")))
            self.assertEqual(provider.branch_name(Path("/somewhere")), "")


@unittest.skipIf(shutil.which("git") is None, "git is not installed")
class GitStatusProviderRealRepoTests(unittest.TestCase):
    def _git(self, root: Path, *args: str) -> None:
        subprocess.run(
            ["git", "-C", str(root), *args],
            check=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def _init_repo(self, root: Path) -> None:
        self._git(root, "init", "-q")
        self._git(root, "config", "user.email", "dev@example.com")
        self._git(root, "config", "user.name", "Dev")

    def _commit_all(self, root: Path) -> None:
        self._git(root, "add", "-A")
        self._git(root, "-c", "commit.gpgsign=false", "commit", "-q", "-m", "init")

    def test_real_repository_status_and_stats(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._init_repo(root)
            (root / "tracked.txt").write_text("one\ntwo\n", encoding="utf-8")
            self._commit_all(root)

            (root / "tracked.txt").write_text("one\ntwo\nthree\n", encoding="utf-8")
            (root / "fresh").mkdir()
            (root / "fresh" / "new.txt").write_text("x\n", encoding="utf-8")

            provider = GitStatusProvider()
            self.assertTrue(provider.is_repository(root))

            status = provider.status_map(root)
            self.assertEqual(status.get("tracked.txt"), "M")
            self.assertEqual(status.get("fresh/new.txt"), "??")
            self.assertNotIn("fresh", status)

            stats = provider.diff_stats(root)
            self.assertEqual(stats["tracked.txt"], DiffStats(1, 0))

            files = provider.file_list(root)
            self.assertIn("tracked.txt", files)
            self.assertIn("fresh/new.txt", files)
            self.assertIn("+three", provider.file_diff(root, root / "tracked.txt"))

    def test_ignored_directory_is_reported_once(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._init_repo(root)
            (root / ".gitignore").write_text("out/\n", encoding="utf-8")
            self._commit_all(root)
            (root / "out").mkdir()
            for index in range(20):
                (root / "out" / f"f{index}.txt").write_text("x\n", encoding="utf-8")

            status = GitStatusProvider().status_map(root)

            self.assertEqual(status, {"out": "!!"})

    def test_staged_change_is_counted_once(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            self._init_repo(root)
            (root / "b.txt").write_text("a\n", encoding="utf-8")
            self._commit_all(root)

            (root / "b.txt").write_text("a\nb\nc\nd\n", encoding="utf-8")
            self._git(root, "add", "b.txt")
            self.assertEqual(GitStatusProvider().diff_stats(root), {"b.txt": DiffStats(3, 0)})

            (root / "b.txt").write_text("a\nb\nc\nd\ne\n", encoding="utf-8")
            self.assertEqual(GitStatusProvider().diff_stats(root), {"b.txt": DiffStats(4, 0)})


if __name__ == "__main__":
    unittest.main()
