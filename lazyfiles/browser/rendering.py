"""Row and chrome formatting for the file browser panel."""

from __future__ import annotations

from ..ansi import clip_ansi_line
from ..file_tree_model import DirectoryNode, TreeNode, TreeSummary
from ..git_status import is_change_status, is_ignored_status, is_untracked_status
from ..runtime.scan import ScanState
from ..ui_theme import DEFAULT_THEME, UITheme

SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
LOADING_MARKER = "⏳"
DIVIDER_CHAR = "─"


def _paint(color: str, text: str, theme: UITheme) -> str:
    if not color:
        return text
    return f"{color}{text}{theme.reset}"


def format_node_status(node: TreeNode, theme: UITheme | None = None) -> str:
    """Return the single status badge shown after a row name."""
    active_theme = theme or DEFAULT_THEME
    if is_ignored_status(node.git_status):
        return ""
    if node.externally_modified:
        return _paint(active_theme.status_external, " *", active_theme)
    status = node.git_status
    if status in {"M", "MM"}:
        return _paint(active_theme.status_modified, " M", active_theme)
    if is_untracked_status(status):
        return _paint(active_theme.status_untracked, " ?", active_theme)
    if status == "A":
        return _paint(active_theme.status_added, " A", active_theme)
    if status == "D":
        return _paint(active_theme.status_deleted, " D", active_theme)
    return ""


def format_node_meta(node: TreeNode, theme: UITheme | None = None) -> str:
    """Return `` +A -R NL`` figures for a row.

    Collapsed directories show their aggregates (line total only once
    complete); expanded directories show nothing. Untracked files without
    diff stats present their whole line count as additions.
    """
    active_theme = theme or DEFAULT_THEME
    if is_ignored_status(node.git_status):
        return ""

    parts: list[str] = []
    if isinstance(node, DirectoryNode):
        if node.expanded:
            return ""
        totals = node.totals
        if totals.added > 0:
            parts.append(_paint(active_theme.added, f"+{totals.added}", active_theme))
        if totals.removed > 0:
            parts.append(_paint(active_theme.removed, f"-{totals.removed}", active_theme))
        if totals.lines and totals.complete:
            parts.append(_paint(active_theme.lines, f"{totals.lines}L", active_theme))
    else:
        stats = node.diff_stats
        if stats is not None:
            if stats.added > 0:
                parts.append(_paint(active_theme.added, f"+{stats.added}", active_theme))
            if stats.removed > 0:
                parts.append(_paint(active_theme.removed, f"-{stats.removed}", active_theme))
        elif is_untracked_status(node.git_status) and node.line_count is not None:
            parts.append(_paint(active_theme.added, f"+{node.line_count}", active_theme))
        if node.line_count is not None:
            parts.append(_paint(active_theme.lines, f"{node.line_count}L", active_theme))

    return f" {' '.join(parts)}" if parts else ""


def format_node_name(node: TreeNode, theme: UITheme | None = None) -> str:
    active_theme = theme or DEFAULT_THEME
    if is_ignored_status(node.git_status):
        return _paint(active_theme.ignored, node.name, active_theme)
    if isinstance(node, DirectoryNode):
        color = active_theme.status_modified if node.has_changed_descendant else active_theme.dir_name
        label = _paint(color, node.name, active_theme)
        if node.loading:
            label += _paint(active_theme.loading, f" {LOADING_MARKER}", active_theme)
        return label
    if is_change_status(node.git_status) or node.externally_modified:
        return _paint(active_theme.status_modified, node.name, active_theme)
    return _paint(active_theme.file_name, node.name, active_theme)


def format_row(
    node: TreeNode,
    depth: int,
    width: int,
    *,
    selected: bool = False,
    theme: UITheme | None = None,
) -> str:
    """Render one projected entry as an indented, clipped row."""
    active_theme = theme or DEFAULT_THEME
    indent = "  " * depth
    if isinstance(node, DirectoryNode):
        icon = "▼ " if node.expanded else "▶ "
    else:
        icon = "  "
    line = (
        f"{indent}{icon}{format_node_name(node, active_theme)}"
        f"{format_node_status(node, active_theme)}{format_node_meta(node, active_theme)}"
    )
    line = clip_ansi_line(line, width, active_theme.reset)
    if selected and active_theme.reverse:
        line = f"{active_theme.reverse}{line}{active_theme.reset}"
    return line


def format_summary(summary: TreeSummary, theme: UITheme | None = None) -> str:
    active_theme = theme or DEFAULT_THEME
    text = ""
    if summary.total_lines is not None:
        text += _paint(active_theme.lines, f" {summary.total_lines}L", active_theme)
    if summary.added > 0:
        text += _paint(active_theme.added, f" +{summary.added}", active_theme)
    if summary.removed > 0:
        text += _paint(active_theme.removed, f" -{summary.removed}", active_theme)
    return text


def format_activity(scan_state: ScanState, counting: bool, theme: UITheme | None = None) -> str:
    """Return the spinner/``[partial]`` suffix of the header."""
    active_theme = theme or DEFAULT_THEME
    spinner = SPINNER_FRAMES[scan_state.spinner_index % len(SPINNER_FRAMES)]
    parts: list[str] = []
    if scan_state.is_scanning:
        parts.append(f"{spinner} scanning")
    if counting:
        parts.append(f"{spinner} counts")
    text = _paint(active_theme.dim, f" {' '.join(parts)}", active_theme) if parts else ""
    if scan_state.is_partial:
        text += _paint(active_theme.partial, " [partial]", active_theme)
    return text


def format_header(
    root_name: str,
    branch: str,
    summary: TreeSummary,
    scan_state: ScanState,
    counting: bool,
    width: int,
    *,
    search_mode: bool = False,
    search_query: str = "",
    theme: UITheme | None = None,
) -> str:
    active_theme = theme or DEFAULT_THEME
    header = _paint(active_theme.bold, root_name, active_theme)
    if branch:
        header += _paint(active_theme.active, f" ({branch})", active_theme)
    header += format_summary(summary, active_theme)
    header += format_activity(scan_state, counting, active_theme)
    if search_mode:
        header += _paint(active_theme.search_query, f"  /{search_query}█", active_theme)
    return clip_ansi_line(header, width, active_theme.reset)


def format_divider(width: int, theme: UITheme | None = None) -> str:
    active_theme = theme or DEFAULT_THEME
    return _paint(active_theme.divider, DIVIDER_CHAR * max(0, width), active_theme)


def format_empty_label(scanning: bool, search_query: str) -> str:
    if scanning:
        return "  (loading...)"
    if search_query:
        return f"  (no files matching '{search_query}')"
    return "  (no files)"


def format_position(selected_index: int, total: int) -> str:
    """Return the ``i/n (pct%)`` footer for a non-empty projection."""
    pct = round(selected_index / (total - 1) * 100) if total > 1 else 100
    return f"  {selected_index + 1}/{total} ({pct}%)"


def format_help(
    width: int,
    *,
    search_mode: bool = False,
    show_only_changed: bool = False,
    theme: UITheme | None = None,
) -> str:
    active_theme = theme or DEFAULT_THEME
    if search_mode:
        text = _paint(active_theme.help_dim, "Type to search  ↑↓: nav  Enter: confirm  Esc: cancel", active_theme)
    else:
        text = _paint(
            active_theme.help_dim,
            "j/k: nav  []: next/prev change  c: toggle changed  /: search  q: close",
            active_theme,
        )
        if show_only_changed:
            text += _paint(active_theme.partial, " [changed only]", active_theme)
    return clip_ansi_line(text, width, active_theme.reset)


def window_bounds(selected_index: int, total: int, height: int) -> tuple[int, int]:
    """Return ``(start, end)`` of a ``height``-row window centered on the selection."""
    start = max(0, min(selected_index - height // 2, total - height))
    end = min(total, start + height)
    return start, end


__all__ = [
    "SPINNER_FRAMES",
    "format_activity",
    "format_divider",
    "format_empty_label",
    "format_header",
    "format_help",
    "format_node_meta",
    "format_node_name",
    "format_node_status",
    "format_position",
    "format_row",
    "format_summary",
    "window_bounds",
]
