"""Name-based ignore policy for tree construction and scanning.

Matches single path segments against a fixed set of build/cache directory
names, optional glob patterns, and the hidden-entry ``.`` prefix.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable
from dataclasses import dataclass

HIDDEN_PREFIX = "."

DEFAULT_IGNORED_NAMES: frozenset[str] = frozenset(
    {
        "node_modules",
        ".git",
        ".DS_Store",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".next",
        ".nuxt",
        "dist",
        "build",
        ".venv",
        "venv",
        ".env",
        "coverage",
        ".nyc_output",
        ".turbo",
        ".cache",
    }
)


@dataclass(frozen=True)
class IgnorePolicy:
    """Static name/pattern matcher. Pure: never touches the filesystem."""

    names: frozenset[str] = DEFAULT_IGNORED_NAMES
    patterns: tuple[str, ...] = ()

    def is_ignored(self, name: str) -> bool:
        """Return whether a single path segment should be excluded."""
        if not name or name.startswith(HIDDEN_PREFIX):
            return True
        if name in self.names:
            return True
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in self.patterns)

    def is_ignored_path(self, parts: Iterable[str]) -> bool:
        """Return whether any segment of a relative path is ignored."""
        return any(self.is_ignored(part) for part in parts)


def build_ignore_policy(
    extra_names: Iterable[str] = (),
    patterns: Iterable[str] = (),
) -> IgnorePolicy:
    """Return the default policy extended with configured names and globs."""
    return IgnorePolicy(
        names=DEFAULT_IGNORED_NAMES | frozenset(extra_names),
        patterns=tuple(patterns),
    )


__all__ = [
    "DEFAULT_IGNORED_NAMES",
    "HIDDEN_PREFIX",
    "IgnorePolicy",
    "build_ignore_policy",
]
