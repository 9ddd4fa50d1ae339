"""Directory walking and read-only scanning for ntcleaner."""

import logging
import os
import time
from pathlib import Path
from stat import S_ISDIR
from typing import Callable

logger = logging.getLogger(__name__)

# Called for every regular file; returns True if the file counts toward the result
FileVisitor = Callable[[Path, os.stat_result], bool]


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return time.time_ns() // 1_000_000


def file_age_ms(stat: os.stat_result, now: int) -> int:
    """Age of a file in milliseconds, from its modification time."""
    return now - stat.st_mtime_ns // 1_000_000


def is_older_than(stat: os.stat_result, cutoff_ms: int, now: int) -> bool:
    """True if the file's age strictly exceeds cutoff_ms."""
    return file_age_ms(stat, now) > cutoff_ms


def dir_exists(path: Path) -> bool:
    """
    Check that path is a directory, treating unreadable paths as missing.

    Missing paths are silent; any other stat() failure is logged.
    """
    try:
        return S_ISDIR(Path(path).stat().st_mode)
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError as e:
        logger.warning("Cannot access %s: %s", path, e)
        return False


def walk_directory(
    path: Path,
    visitor: FileVisitor,
    prune_empty: bool = False,
) -> tuple[int, int]:
    """
    Recursively walk a directory, calling visitor on every regular file.

    Uses os.scandir and never follows symlinks. A directory that cannot be
    read contributes nothing, but its siblings are still walked.

    Args:
        path: Directory to walk
        visitor: Per-file callback; files it accepts are counted
        prune_empty: Remove subdirectories left empty after walking them

    Returns:
        Tuple of (file_count, total_bytes) for accepted files
    """
    path = Path(path)
    file_count = 0
    total_bytes = 0

    if not dir_exists(path):
        return 0, 0

    try:
        with os.scandir(path) as entries:
            for entry in entries:
                entry_path = Path(entry.path)
                try:
                    if entry.is_file(follow_symlinks=False):
                        stat = entry.stat(follow_symlinks=False)
                        if visitor(entry_path, stat):
                            file_count += 1
                            total_bytes += stat.st_size
                    elif entry.is_dir(follow_symlinks=False):
                        sub_files, sub_bytes = walk_directory(entry_path, visitor, prune_empty)
                        file_count += sub_files
                        total_bytes += sub_bytes
                        if prune_empty:
                            _remove_if_empty(entry_path)
                except (PermissionError, OSError) as e:
                    logger.warning("Cannot stat %s: %s", entry_path, e)
                    continue
    except (PermissionError, OSError) as e:
        logger.warning("Cannot read directory %s: %s", path, e)

    return file_count, total_bytes


def _remove_if_empty(path: Path) -> None:
    try:
        if not any(path.iterdir()):
            path.rmdir()
            logger.debug("Removed empty directory %s", path)
    except OSError as e:
        logger.debug("Could not remove %s: %s", path, e)


def scan_directory(path: Path, cutoff_ms: int = 0) -> tuple[int, int]:
    """
    Count files and bytes under a directory without modifying it.

    Args:
        path: Directory to scan
        cutoff_ms: Only count files older than this many milliseconds;
            0 or less counts everything

    Returns:
        Tuple of (file_count, total_bytes)
    """
    now = now_ms()

    def count(file_path: Path, stat: os.stat_result) -> bool:
        return cutoff_ms <= 0 or is_older_than(stat, cutoff_ms, now)

    return walk_directory(path, count)
