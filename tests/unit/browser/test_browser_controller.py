"""Browser panel behavior over a fake repository and a fake clock."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazyfiles.browser import BrowserController
from lazyfiles.file_tree_model import DiffStats
from lazyfiles.runtime.session import FileTreeSession
from lazyfiles.runtime.timers import TimerQueue
from lazyfiles.ui_theme import PLAIN_THEME
from lazyfiles.viewer import FileViewer


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class FakeGit:
    def __init__(self, files, status=None, stats=None, branch="main", repo=True) -> None:
        self.files = list(files)
        self.status = dict(status or {})
        self.stats = dict(stats or {})
        self.branch = branch
        self.repo = repo

    def is_repository(self, _root: Path) -> bool:
        return self.repo

    def branch_name(self, _root: Path) -> str:
        return self.branch

    def status_map(self, _root: Path, include_ignored: bool = True) -> dict[str, str]:
        return dict(self.status)

    def diff_stats(self, _root: Path) -> dict[str, DiffStats]:
        return dict(self.stats)

    def file_list(self, _root: Path) -> list[str]:
        return list(self.files)

    def file_diff(self, _root: Path, _path: Path) -> str:
        return ""


def _write(root: Path, rel_path: str, lines: int) -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"line {index}\n" for index in range(lines)), encoding="utf-8")


class BrowserScenarioTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        _write(self.root, "src/a.ts", 10)
        _write(self.root, "src/b.ts", 12)
        _write(self.root, "node_modules/pkg/index.js", 50)
        self.git = FakeGit(
            ["src/a.ts", "src/b.ts", "node_modules/pkg/index.js"],
            status={"src/a.ts": "??", "src/b.ts": "M", "node_modules": "!!"},
            stats={"src/b.ts": DiffStats(3, 1)},
        )
        self.clock = FakeClock()
        self.session = FileTreeSession(self.root, git=self.git, timers=TimerQueue(monotonic=self.clock))
        self.closed: list[bool] = []
        self.viewer = FileViewer(self.root, git=self.git, theme=PLAIN_THEME, colorize=False)
        self.browser = BrowserController(
            self.session,
            self.viewer,
            on_close=lambda: self.closed.append(True),
            theme=PLAIN_THEME,
            persist_height=False,
        )
        self.session.timers.run_until(lambda: self.session.busy, sleep=self.clock.sleep)

    def tearDown(self) -> None:
        self.session.close()
        self._tmp.cleanup()

    def _rows(self) -> list[str]:
        return [entry for entry in self.browser.render(80)[2:] if entry.strip()]

    def test_summary_and_rows_match_git_state(self) -> None:
        summary = self.session.summary
        self.assertEqual((summary.total_lines, summary.added, summary.removed), (22, 3, 1))
        self.assertIsNone(self.session.node_for_path(self.root / "node_modules"))

        lines = self.browser.render(80)
        self.assertEqual(lines[0], f"{self.root.name} (main) 22L +3 -1")
        self.assertEqual(lines[1], "─" * 80)
        self.assertEqual(lines[2], "▶ src +3 -1 22L")

        self.browser.handle_key("ENTER")
        lines = self.browser.render(80)
        self.assertEqual(lines[2:5], ["▼ src", "    a.ts ? +10 10L", "    b.ts M +3 -1 12L"])
        self.assertEqual(lines[2 + self.browser.cursor.browser_height], "  1/3 (0%)")
        self.assertIn("j/k: nav", lines[-1])

    def test_navigate_to_change_wraps_and_expands_ancestors(self) -> None:
        src = self.session.node_for_path(self.root / "src")
        self.assertFalse(src.expanded)

        self.browser.handle_key("]")
        self.assertTrue(src.expanded)
        self.assertEqual(self.browser.selected_entry().node.name, "a.ts")
        self.browser.handle_key("]")
        self.assertEqual(self.browser.selected_entry().node.name, "b.ts")
        self.browser.handle_key("]")
        self.assertEqual(self.browser.selected_entry().node.name, "a.ts")
        self.browser.handle_key("[")
        self.assertEqual(self.browser.selected_entry().node.name, "b.ts")

    def test_search_filters_whole_tree_and_escape_clears(self) -> None:
        self.browser.handle_key("/")
        for key in "b.t":
            self.browser.handle_key(key)
        self.assertTrue(self.browser.cursor.search_mode)
        self.assertEqual([entry.node.name for entry in self.browser.display_entries()], ["b.ts"])
        self.assertTrue(self.browser.render(80)[0].endswith("/b.t█"))

        self.browser.handle_key("BACKSPACE")
        self.browser.handle_key("j")
        self.assertEqual(self.browser.cursor.search_query, "b.j")
        self.assertIn("(no files matching 'b.j')", self.browser.render(80)[2])

        self.browser.handle_key("ESC")
        self.assertFalse(self.browser.cursor.search_mode)
        self.assertEqual(self.browser.cursor.search_query, "")
        self.assertEqual(self.closed, [])

    def test_changed_only_toggle_and_cursor_bounds(self) -> None:
        self.browser.handle_key("ENTER")
        self.browser.handle_key("c")
        self.assertTrue(self.browser.cursor.show_only_changed)
        self.assertIn("[changed only]", self.browser.render(80)[-1])
        for _ in range(10):
            self.browser.handle_key("DOWN")
        self.assertEqual(self.browser.cursor.selected_index, 2)
        self.browser.handle_key("PAGE_UP")
        self.assertEqual(self.browser.cursor.selected_index, 0)
        self.browser.handle_key("k")
        self.assertEqual(self.browser.cursor.selected_index, 0)

    def test_left_and_right_collapse_and_expand(self) -> None:
        src = self.session.node_for_path(self.root / "src")
        self.browser.handle_key("l")
        self.assertTrue(src.expanded)
        self.browser.handle_key("h")
        self.assertFalse(src.expanded)

    def test_panel_height_is_clamped_and_persisted(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("lazyfiles.config.CONFIG_PATH", config_path):
                self.browser.persist_height = True
                for _ in range(10):
                    self.browser.handle_key("+")
                self.assertEqual(self.browser.cursor.browser_height, 40)
                for _ in range(10):
                    self.browser.handle_key("_")
                self.assertEqual(self.browser.cursor.browser_height, 5)
                from lazyfiles import config

                self.assertEqual(config.load_browser_height(), 5)
        self.assertEqual(len(self.browser.render(80)), 2 + 5 + 1 + 2)

    def test_opening_a_file_routes_keys_to_viewer(self) -> None:
        self.browser.handle_key("ENTER")
        self.browser.handle_key("DOWN")
        self.browser.handle_key("ENTER")
        self.assertTrue(self.viewer.is_open)
        self.assertEqual(self.viewer.file.name, "a.ts")

        lines = self.browser.render(80)
        self.assertTrue(lines[0].startswith("src/a.ts [UNTRACKED] +10 10L"))
        self.assertEqual(lines[2], "   1 │ line 0")

        self.browser.handle_key("]")
        self.assertEqual(self.viewer.file.name, "b.ts")
        self.browser.handle_key("q")
        self.assertFalse(self.viewer.is_open)
        self.assertEqual(self.closed, [])
        self.assertEqual(self.browser.selected_entry().node.name, "b.ts")

    def test_quit_closes_session_and_notifies(self) -> None:
        self.browser.handle_key("q")
        self.assertEqual(self.closed, [True])
        self.assertTrue(self.session.closed)
        self.browser.handle_key("q")
        self.assertEqual(self.closed, [True])


class BrowserLoadingTests(unittest.TestCase):
    def test_plain_directory_shows_loading_until_scanned(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _write(root, "notes.txt", 2)
            clock = FakeClock()
            session = FileTreeSession(
                root,
                git=FakeGit([], repo=False),
                timers=TimerQueue(monotonic=clock),
                home=Path("/nonexistent-home"),
            )
            browser = BrowserController(session, theme=PLAIN_THEME, persist_height=False)

            loading = browser.render(80)
            self.assertIn("scanning", loading[0])
            self.assertEqual(loading[2], "  (loading...)")

            session.timers.run_until(lambda: session.busy, sleep=clock.sleep)
            lines = browser.render(80)
            self.assertEqual(len(loading), len(lines))
            self.assertEqual(lines[0], f"{root.name} 2L")
            self.assertEqual(lines[2], "  notes.txt 2L")
            session.close()


if __name__ == "__main__":
    unittest.main()
