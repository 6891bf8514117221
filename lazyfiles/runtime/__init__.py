"""Background engine: timers, scanning, line counting, and reconciliation."""

from __future__ import annotations

from .timers import TimerHandle, TimerQueue
from .line_counts import LineCountCache, LineCountScheduler, count_lines
from .scan import ScanScheduler, ScanState, should_start_in_safe_mode
from .session import ChangedFile, FileTreeSession
from .reconcile import TreeReconciler, capture_expanded, restore_expanded

__all__ = [
    "ChangedFile",
    "FileTreeSession",
    "LineCountCache",
    "LineCountScheduler",
    "ScanScheduler",
    "ScanState",
    "TimerHandle",
    "TimerQueue",
    "TreeReconciler",
    "capture_expanded",
    "count_lines",
    "restore_expanded",
    "should_start_in_safe_mode",
]
