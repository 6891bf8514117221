"""Persistent JSON config helpers and engine tuning constants.

Stores the browser panel height and optional engine overrides.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "lazyfiles"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

MAX_TREE_DEPTH = 6
POLL_INTERVAL_SECONDS = 3.0
MAX_LINE_COUNT_BYTES = 256 * 1024
LINE_COUNT_BATCH_SIZE = 8
LINE_COUNT_BATCH_DELAY_SECONDS = 0.030
SCAN_BATCH_SIZE = 4
SCAN_BATCH_DELAY_SECONDS = 0.025
SAFE_MODE_ENTRY_THRESHOLD = 200
SAFE_MODE_DELAY_FACTOR = 4
GIT_TIMEOUT_SECONDS = 5.0
GIT_PROBE_TIMEOUT_SECONDS = 2.0

DEFAULT_BROWSER_HEIGHT = 15
DEFAULT_VIEWER_HEIGHT = 18
MIN_PANEL_HEIGHT = 5
MAX_BROWSER_HEIGHT = 40
MAX_VIEWER_HEIGHT = 50
PANEL_HEIGHT_STEP = 5


@dataclass(frozen=True)
class EngineConfig:
    """Tuning knobs for scanning, counting, and polling."""

    max_tree_depth: int = MAX_TREE_DEPTH
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS
    max_line_count_bytes: int = MAX_LINE_COUNT_BYTES
    line_count_batch_size: int = LINE_COUNT_BATCH_SIZE
    line_count_batch_delay_seconds: float = LINE_COUNT_BATCH_DELAY_SECONDS
    scan_batch_size: int = SCAN_BATCH_SIZE
    scan_batch_delay_seconds: float = SCAN_BATCH_DELAY_SECONDS
    safe_mode_entry_threshold: int = SAFE_MODE_ENTRY_THRESHOLD
    safe_mode_delay_factor: int = SAFE_MODE_DELAY_FACTOR
    git_timeout_seconds: float = GIT_TIMEOUT_SECONDS
    extra_ignored_names: tuple[str, ...] = ()
    ignored_patterns: tuple[str, ...] = ()


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are ignored so an unwritable config never breaks a
    browsing session.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        pass


def _coerce_field(current: object, raw: object) -> object | None:
    """Return ``raw`` coerced to the type of ``current``, or ``None`` if invalid."""
    if isinstance(current, bool):
        return raw if isinstance(raw, bool) else None
    if isinstance(current, int):
        if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
            return None
        return raw
    if isinstance(current, float):
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0:
            return None
        return float(raw)
    if isinstance(current, tuple):
        if not isinstance(raw, list):
            return None
        return tuple(item for item in raw if isinstance(item, str) and item)
    return None


def engine_config_from_mapping(raw: object, base: EngineConfig | None = None) -> EngineConfig:
    """Overlay valid values from ``raw`` onto ``base``.

    Unknown keys and values of the wrong type are dropped.
    """
    config = base or EngineConfig()
    if not isinstance(raw, dict):
        return config
    overrides: dict[str, object] = {}
    for field_info in fields(EngineConfig):
        if field_info.name not in raw:
            continue
        value = _coerce_field(getattr(config, field_info.name), raw[field_info.name])
        if value is not None:
            overrides[field_info.name] = value
    return replace(config, **overrides)


def load_engine_config() -> EngineConfig:
    """Return engine tuning from the ``engine`` config key."""
    return engine_config_from_mapping(load_config().get("engine"))


def clamp_browser_height(height: int) -> int:
    return max(MIN_PANEL_HEIGHT, min(MAX_BROWSER_HEIGHT, height))


def load_browser_height() -> int:
    """Return persisted browser panel height, clamped to the allowed range."""
    value = load_config().get("browser_height")
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_BROWSER_HEIGHT
    return clamp_browser_height(value)


def save_browser_height(height: int) -> None:
    config = load_config()
    config["browser_height"] = clamp_browser_height(int(height))
    save_config(config)
