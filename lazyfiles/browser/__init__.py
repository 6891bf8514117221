"""File browser panel: key handling and row formatting."""

from __future__ import annotations

from .controller import BrowserController

__all__ = ["BrowserController"]
