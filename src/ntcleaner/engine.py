"""Scan and clean orchestration across categories and accounts."""

import logging
from pathlib import Path
from typing import Callable

from ntcleaner.cleaner import clean_directory
from ntcleaner.models import MS_PER_DAY, CacheCategory, CleanOptions, CleanStats
from ntcleaner.paths import CleanablePaths, PathResolver
from ntcleaner.scanner import dir_exists, scan_directory

logger = logging.getLogger(__name__)


class CleanEngine:
    """Runs the scanner and cleaner over an account's categorized directories."""

    def __init__(self, resolver: PathResolver) -> None:
        self.resolver = resolver

    @property
    def layout_name(self) -> str:
        return self.resolver.layout.name

    def get_cleanable_paths(self, base_dir: Path, uin: str) -> CleanablePaths:
        return self.resolver.get_cleanable_paths(Path(base_dir), uin)

    def scan_cache(
        self,
        base_dir: Path,
        uin: str,
        retain_days: int = 0,
        progress_callback: Callable[[CacheCategory, Path], None] | None = None,
    ) -> CleanStats:
        """
        Measure an account's caches without touching the disk.

        Args:
            base_dir: Base data directory
            uin: Account identifier
            retain_days: 0 reports everything present; a positive value
                reports only files a clean with that window would delete
            progress_callback: Optional callback(category, directory)

        Returns:
            CleanStats with totals and a per-category breakdown
        """
        cutoff_ms = max(retain_days, 0) * MS_PER_DAY
        stats = CleanStats()

        for category, directories in self.get_cleanable_paths(base_dir, uin).items():
            for directory in directories:
                if progress_callback:
                    progress_callback(category, directory)
                files, size = scan_directory(directory, cutoff_ms)
                stats.add(category, files, size)

        return stats

    def execute_clean(
        self,
        base_dir: Path,
        uin: str,
        options: CleanOptions,
        progress_callback: Callable[[CacheCategory, Path], None] | None = None,
    ) -> CleanStats:
        """
        Delete stale files from every enabled category of an account.

        Disabled categories are skipped without being scanned.

        Args:
            base_dir: Base data directory
            uin: Account identifier
            options: Enable flags and retention window
            progress_callback: Optional callback(category, directory)

        Returns:
            CleanStats of deleted files and freed bytes
        """
        stats = CleanStats()

        for category, directories in self.get_cleanable_paths(base_dir, uin).items():
            if not options.is_enabled(category):
                continue
            for directory in directories:
                if progress_callback:
                    progress_callback(category, directory)
                files, size = clean_directory(directory, options.retain_days)
                stats.add(category, files, size)

        logger.info(
            "Cleaned account %s: %d files, %s (retain %d days)",
            uin,
            stats.total_files,
            stats.size_human,
            options.retain_days,
        )
        return stats

    def get_all_accounts(self, base_dir: Path) -> list[str]:
        """
        List the accounts that can be resolved under base_dir.

        The Windows layout reads account directories from disk; the Linux
        layout only knows accounts whose uid has been registered.
        """
        base_dir = Path(base_dir)
        if not dir_exists(base_dir):
            return []
        return self.resolver.layout.list_accounts(base_dir)
