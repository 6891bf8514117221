"""Command-line front door for lazyfiles.

Builds a browsing session for a directory, drains background scanning and
line counting, then prints the rendered browser panel.
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from collections.abc import Sequence
from pathlib import Path

from .browser import BrowserController
from .config import MIN_PANEL_HEIGHT, load_engine_config
from .file_tree_model import DirectoryNode, node_depth
from .runtime import FileTreeSession
from .state import BrowserCursor
from .ui_theme import resolve_theme

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _default_render_width() -> int:
    term = shutil.get_terminal_size((80, 24))
    return max(1, term.columns)


def drain(session: FileTreeSession) -> None:
    """Run scan and line-count batches until no background work remains."""
    session.timers.run_until(lambda: session.busy)


def expand_all(session: FileTreeSession) -> None:
    """Expand every directory, scanning newly reachable ones as they appear."""
    while True:
        changed = False
        for node in list(session.index.values()):
            if not isinstance(node, DirectoryNode) or node.expanded:
                continue
            node.expanded = True
            changed = True
            if not session.is_repo and node.children is None:
                session.scan.enqueue(node, node_depth(node))
        session.refresh_lists()
        drain(session)
        if not changed:
            return


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazyfiles",
        description="Print a project file tree with git status, diff stats, and line counts.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Directory to browse. Defaults to current directory.")
    parser.add_argument(
        "--width",
        type=_positive_int,
        default=None,
        help="Column width for output (default: terminal width).",
    )
    parser.add_argument("--filter", default="", help="Only show entries whose name contains TEXT.")
    parser.add_argument("--changed", action="store_true", help="Only show changed files and their directories.")
    parser.add_argument("--expand-all", action="store_true", help="Expand every directory before printing.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--debug", action="store_true", help="Log engine activity to stderr.")
    return parser


def main(argv: Sequence[str] | None = None, default_path: Path | None = None) -> None:
    """Parse CLI arguments and print the browser panel for a directory.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path or default_path)
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    if not path.is_dir():
        raise SystemExit(f"Not a directory: {path}")

    session = FileTreeSession(path, config=load_engine_config())
    try:
        drain(session)
        if args.expand_all:
            expand_all(session)
        logger.debug("scan finished: %d nodes, mode=%s", len(session.index), session.scan_state.mode)

        cursor = BrowserCursor(search_query=args.filter, show_only_changed=args.changed)
        controller = BrowserController(
            session,
            cursor=cursor,
            theme=resolve_theme(no_color=args.no_color or not sys.stdout.isatty()),
            persist_height=False,
        )
        cursor.browser_height = max(MIN_PANEL_HEIGHT, len(controller.display_entries()))
        width = args.width if args.width is not None else _default_render_width()
        lines = controller.render_browser(width, animate=False)
        sys.stdout.write("\n".join(lines) + "\n")
    finally:
        session.close()


if __name__ == "__main__":
    main()
