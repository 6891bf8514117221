"""Filesystem primitives: directory listing and file stat."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryChild:
    """One listed directory child plus cached stat metadata."""

    name: str
    path: Path
    is_dir: bool
    file_size: int | None
    mtime_ns: int | None


@dataclass(frozen=True)
class FileStat:
    size: int
    mtime_ns: int


def stat_file(path: Path) -> FileStat | None:
    """Return size/mtime for ``path`` or ``None`` on stat failure."""
    try:
        st = path.stat()
    except OSError:
        return None
    return FileStat(size=int(st.st_size), mtime_ns=int(st.st_mtime_ns))


def list_directory_children(
    directory: Path,
    is_ignored: Callable[[str], bool] | None = None,
) -> tuple[list[DirectoryChild], int, OSError | None]:
    """List children of ``directory`` with stat metadata, sorted for display.

    Returns ``(children, raw_entry_count, scan_error)``. ``raw_entry_count``
    counts every entry before ignore filtering. ``scan_error`` is set when the
    directory cannot be listed, in which case ``children`` is empty.
    """
    children: list[DirectoryChild] = []
    raw_entry_count = 0
    try:
        with os.scandir(directory) as entries:
            for child in entries:
                raw_entry_count += 1
                name = child.name
                if is_ignored is not None and is_ignored(name):
                    continue

                try:
                    is_dir = child.is_dir(follow_symlinks=False)
                except OSError:
                    is_dir = False

                file_size: int | None = None
                mtime_ns: int | None = None
                try:
                    stat = child.stat(follow_symlinks=False)
                    mtime_ns = int(stat.st_mtime_ns)
                    if not is_dir:
                        file_size = int(stat.st_size)
                except OSError:
                    pass

                children.append(
                    DirectoryChild(
                        name=name,
                        path=Path(child.path),
                        is_dir=is_dir,
                        file_size=file_size,
                        mtime_ns=mtime_ns,
                    )
                )
    except OSError as exc:
        logger.debug("cannot list %s: %s", directory, exc)
        return [], raw_entry_count, exc

    children.sort(key=lambda item: (not item.is_dir, item.name.casefold(), item.name))
    return children, raw_entry_count, None


__all__ = [
    "DirectoryChild",
    "FileStat",
    "list_directory_children",
    "stat_file",
]
