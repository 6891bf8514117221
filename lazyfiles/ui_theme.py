"""ANSI palettes for the browser and viewer panels."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by row formatting and chrome."""

    name: str
    reset: str
    reverse: str
    bold: str
    dim: str
    divider: str
    dir_name: str
    file_name: str
    ignored: str
    loading: str
    lines: str
    added: str
    removed: str
    status_modified: str
    status_untracked: str
    status_added: str
    status_deleted: str
    status_external: str
    search_query: str
    help_dim: str
    active: str
    partial: str


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    reverse="\033[7m",
    bold="\033[1m",
    dim="\033[2m",
    divider="\033[2m",
    dir_name="\033[1;34m",
    file_name="\033[38;5;252m",
    ignored="\033[2;38;5;244m",
    loading="\033[38;5;179m",
    lines="\033[38;5;109m",
    added="\033[38;5;42m",
    removed="\033[38;5;203m",
    status_modified="\033[38;5;214m",
    status_untracked="\033[38;5;42m",
    status_added="\033[38;5;42m",
    status_deleted="\033[38;5;203m",
    status_external="\033[1;38;5;81m",
    search_query="\033[1;38;5;81m",
    help_dim="\033[2;38;5;250m",
    active="\033[38;5;81m",
    partial="\033[38;5;214m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    reverse="",
    bold="",
    dim="",
    divider="",
    dir_name="",
    file_name="",
    ignored="",
    loading="",
    lines="",
    added="",
    removed="",
    status_modified="",
    status_untracked="",
    status_added="",
    status_deleted="",
    status_external="",
    search_query="",
    help_dim="",
    active="",
    partial="",
)


def resolve_theme(*, no_color: bool = False) -> UITheme:
    """Return the plain palette when color is disabled."""
    return PLAIN_THEME if no_color else DEFAULT_THEME


__all__ = ["DEFAULT_THEME", "PLAIN_THEME", "UITheme", "resolve_theme"]
