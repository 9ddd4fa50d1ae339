"""Retention-based file deletion for ntcleaner."""

import logging
import os
from pathlib import Path

from ntcleaner.models import MS_PER_DAY
from ntcleaner.scanner import is_older_than, now_ms, walk_directory

logger = logging.getLogger(__name__)


def delete_file(path: Path) -> bool:
    """
    Delete a single file.

    Args:
        path: File to delete

    Returns:
        True if the file was removed, False if deletion failed
    """
    try:
        path.unlink()
        return True
    except PermissionError as e:
        logger.warning("Permission denied deleting %s: %s", path, e)
    except OSError as e:
        logger.warning("Cannot delete %s: %s", path, e)
    return False


def clean_directory(path: Path, retain_days: int) -> tuple[int, int]:
    """
    Delete files older than the retention window under a directory.

    Subdirectories emptied by the clean are removed. The directory itself is
    always kept. Files that fail to delete are skipped and not counted.

    Args:
        path: Directory to clean
        retain_days: Files modified within this many days are kept

    Returns:
        Tuple of (files_deleted, bytes_freed)
    """
    cutoff_ms = max(retain_days, 0) * MS_PER_DAY
    now = now_ms()

    def delete_if_stale(file_path: Path, stat: os.stat_result) -> bool:
        if not is_older_than(stat, cutoff_ms, now):
            return False
        return delete_file(file_path)

    files_deleted, bytes_freed = walk_directory(path, delete_if_stale, prune_empty=True)
    if files_deleted:
        logger.debug("Deleted %d files (%d bytes) from %s", files_deleted, bytes_freed, path)
    return files_deleted, bytes_freed
