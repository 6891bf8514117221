"""End-to-end CLI output for a plain (non-repository) directory."""

from __future__ import annotations

import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazyfiles import cli


class CliOutputTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve() / "project"
        (self.root / "src").mkdir(parents=True)
        (self.root / "node_modules").mkdir()
        (self.root / "src" / "app.py").write_text("x = 1\ny = 2\nz = 3\n", encoding="utf-8")
        (self.root / "README.md").write_text("a\nb\n", encoding="utf-8")
        (self.root / "node_modules" / "x.js").write_text("x\n", encoding="utf-8")

        patches = [
            mock.patch("lazyfiles.git_status._run_git", return_value=None),
            mock.patch("lazyfiles.config.CONFIG_PATH", Path(self._tmp.name) / "config.json"),
        ]
        for patcher in patches:
            patcher.start()
            self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, *extra: str) -> list[str]:
        with mock.patch("sys.stdout", new_callable=io.StringIO) as stdout:
            cli.main([str(self.root), "--width", "60", "--no-color", *extra])
        return stdout.getvalue().splitlines()

    def test_prints_collapsed_tree_with_line_counts(self) -> None:
        lines = self._run()
        self.assertEqual(lines[0], "project 5L")
        self.assertEqual(lines[1], "─" * 60)
        self.assertEqual(lines[2:4], ["▶ src 3L", "  README.md 2L"])
        self.assertNotIn("node_modules", "\n".join(lines))
        self.assertIn("  1/2 (0%)", lines)

    def test_expand_all_shows_nested_files(self) -> None:
        lines = self._run("--expand-all")
        self.assertEqual(lines[2:5], ["▼ src", "    app.py 3L", "  README.md 2L"])

    def test_filter_reaches_collapsed_directories(self) -> None:
        lines = self._run("--filter", "app")
        self.assertEqual(lines[2], "    app.py 3L")
        self.assertIn("  1/1 (100%)", lines)

    def test_changed_only_without_git_shows_empty_label(self) -> None:
        lines = self._run("--changed")
        self.assertEqual(lines[2], "  (no files)")

    def test_missing_and_non_directory_paths_exit(self) -> None:
        with self.assertRaises(SystemExit) as missing:
            cli.main([str(self.root / "nope")])
        self.assertIn("Path not found", str(missing.exception))
        with self.assertRaises(SystemExit) as not_dir:
            cli.main([str(self.root / "README.md")])
        self.assertIn("Not a directory", str(not_dir.exception))

    def test_width_must_be_positive(self) -> None:
        with mock.patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                cli.build_parser().parse_args(["--width", "0"])


if __name__ == "__main__":
    unittest.main()
