from __future__ import annotations

from dataclasses import dataclass

from .config import DEFAULT_BROWSER_HEIGHT


@dataclass
class BrowserCursor:
    """Navigation state kept outside the tree and remapped by path on refresh."""

    selected_index: int = 0
    search_query: str = ""
    search_mode: bool = False
    show_only_changed: bool = False
    browser_height: int = DEFAULT_BROWSER_HEIGHT
