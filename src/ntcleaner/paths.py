"""Platform-aware cache path resolution for ntcleaner.

Two on-disk layouts exist:

- Windows: ``<base>/<uin>/nt_qq/nt_data``. The uin is part of the path.
- Linux: ``<base>/nt_qq_<hash>/nt_data`` where
  ``hash = md5(md5(uid) + "nt_kernel")``. The uin never appears on disk, so
  the account's uid (from the host login list) is needed to find it.
"""

import hashlib
import logging
import os
import re
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ntcleaner.models import CacheCategory
from ntcleaner.scanner import dir_exists

logger = logging.getLogger(__name__)

NT_HASH_SALT = "nt_kernel"
HASH_DIR_PREFIX = "nt_qq_"
HASH_DIR_PATTERN = re.compile(r"^nt_qq_[a-f0-9]{32}$")
DATE_DIR_PATTERN = re.compile(r"^\d{4}-\d{2}$")
ACCOUNT_DIR_PATTERN = re.compile(r"^\d{5,11}$")

CleanablePaths = dict[CacheCategory, list[Path]]


def compute_nt_hash(uid: str) -> str:
    """Compute the directory hash for a uid: md5(md5(uid) + salt)."""
    md5_uid = hashlib.md5(uid.encode("utf-8")).hexdigest()
    return hashlib.md5((md5_uid + NT_HASH_SALT).encode("utf-8")).hexdigest()


def hash_dir_for(base: Path, uid: str) -> Path:
    """Hashed account directory for a uid under base."""
    return Path(base) / f"{HASH_DIR_PREFIX}{compute_nt_hash(uid)}"


def list_subdirectories(base: Path, pattern: re.Pattern) -> list[Path]:
    """
    List immediate subdirectories whose names match pattern.

    Args:
        base: Directory to list
        pattern: Compiled regex matched against the full entry name

    Returns:
        Matching directories sorted by name, empty if base is missing or unreadable
    """
    if not dir_exists(base):
        return []

    try:
        with os.scandir(base) as entries:
            matches = [
                Path(entry.path)
                for entry in entries
                if pattern.match(entry.name) and entry.is_dir(follow_symlinks=False)
            ]
    except (PermissionError, OSError) as e:
        logger.warning("Cannot read directory %s: %s", base, e)
        return []

    return sorted(matches)


def get_date_subdirs(base: Path) -> list[Path]:
    """Month subdirectories (``yyyy-mm``) of a media directory."""
    return list_subdirectories(base, DATE_DIR_PATTERN)


def _existing(*paths: Path) -> list[Path]:
    return [p for p in paths if dir_exists(p)]


class IdentityCache:
    """uin -> uid and uin -> hashed directory mappings for one session.

    Entries are added as accounts are discovered and never expire.
    """

    def __init__(self) -> None:
        self.uin_to_uid: dict[str, str] = {}
        self.uin_to_hash_dir: dict[str, Path] = {}
        self.current_uid: str = ""

    def remember_uid(self, uin: str, uid: str) -> None:
        self.uin_to_uid[uin] = uid

    def remember_hash_dir(self, uin: str, hash_dir: Path, overwrite: bool = True) -> None:
        if overwrite or uin not in self.uin_to_hash_dir:
            self.uin_to_hash_dir[uin] = Path(hash_dir)

    def clear(self) -> None:
        """Drop all cached identities."""
        self.uin_to_uid.clear()
        self.uin_to_hash_dir.clear()
        self.current_uid = ""


class DataLayout(ABC):
    """Strategy for locating per-account data on disk."""

    name: str = ""

    @abstractmethod
    def resolve_data_root(self, base: Path, uin: str) -> Optional[Path]:
        """Return the account's ``nt_data`` directory, or None if not found."""

    def resolve_temp_dir(self, base: Path, uin: str) -> Optional[Path]:
        """Return the account's ``nt_temp`` directory, if the layout has one."""
        return None

    @abstractmethod
    def list_accounts(self, base: Path) -> list[str]:
        """List the uins that can be resolved under base."""


class WindowsLayout(DataLayout):
    """``<base>/<uin>/nt_qq/nt_data``."""

    name = "windows"

    def resolve_data_root(self, base: Path, uin: str) -> Optional[Path]:
        data_root = Path(base) / uin / "nt_qq" / "nt_data"
        return data_root if dir_exists(data_root) else None

    def list_accounts(self, base: Path) -> list[str]:
        return [p.name for p in list_subdirectories(Path(base), ACCOUNT_DIR_PATTERN)]


class LinuxLayout(DataLayout):
    """``<base>/nt_qq_<hash>/nt_data``, resolved through the identity cache."""

    name = "linux"

    def __init__(self, identity: IdentityCache) -> None:
        self.identity = identity

    def resolve_data_root(self, base: Path, uin: str) -> Optional[Path]:
        base = Path(base)

        cached = self.identity.uin_to_hash_dir.get(uin)
        if cached is not None:
            data_root = cached / "nt_data"
            if dir_exists(data_root):
                return data_root

        uid = self.identity.uin_to_uid.get(uin)
        if uid:
            hash_dir = hash_dir_for(base, uid)
            data_root = hash_dir / "nt_data"
            if dir_exists(data_root):
                self.identity.remember_hash_dir(uin, hash_dir)
                return data_root

        # Last resort: first hashed directory that has account data. With
        # several accounts and unknown uids this may bind the wrong one.
        for hash_dir in list_subdirectories(base, HASH_DIR_PATTERN):
            data_root = hash_dir / "nt_data"
            if dir_exists(data_root):
                self.identity.remember_hash_dir(uin, hash_dir, overwrite=False)
                logger.info("Guessed data directory %s for account %s", hash_dir, uin)
                return data_root

        return None

    def resolve_temp_dir(self, base: Path, uin: str) -> Optional[Path]:
        cached = self.identity.uin_to_hash_dir.get(uin)
        if cached is None:
            return None
        temp_dir = cached / "nt_temp"
        return temp_dir if dir_exists(temp_dir) else None

    def list_accounts(self, base: Path) -> list[str]:
        accounts = []
        for uin, uid in list(self.identity.uin_to_uid.items()):
            if uin not in self.identity.uin_to_hash_dir:
                hash_dir = hash_dir_for(base, uid)
                if dir_exists(hash_dir):
                    self.identity.remember_hash_dir(uin, hash_dir)
            if uin in self.identity.uin_to_hash_dir:
                accounts.append(uin)
        return accounts


def detect_layout(identity: IdentityCache, layout: str = "auto") -> DataLayout:
    """
    Pick the data layout strategy.

    Args:
        identity: Identity cache used by the Linux layout
        layout: "windows", "linux", or "auto" to follow the running platform

    Returns:
        The layout strategy
    """
    layout = (layout or "auto").lower()
    if layout == "auto":
        layout = "windows" if sys.platform == "win32" else "linux"
    if layout == "windows":
        return WindowsLayout()
    if layout == "linux":
        return LinuxLayout(identity)
    raise ValueError(f"Unknown layout: {layout}")


class PathResolver:
    """Maps (base directory, uin) to the categorized cache directories."""

    def __init__(self, layout: DataLayout) -> None:
        self.layout = layout

    def get_cleanable_paths(self, base: Path, uin: str) -> CleanablePaths:
        """
        Collect the existing cache directories of an account by category.

        Args:
            base: Base data directory
            uin: Account identifier

        Returns:
            Dict with an entry for every category; lists are empty when the
            account's data root cannot be located
        """
        base = Path(base)
        paths: CleanablePaths = {category: [] for category in CacheCategory}

        data_root = self.layout.resolve_data_root(base, uin)
        if data_root is None:
            logger.info("No data directory found for account %s under %s", uin, base)
            return paths

        video_dirs = get_date_subdirs(data_root / "Video")
        for month_dir in video_dirs:
            paths[CacheCategory.VIDEO].extend(_existing(month_dir / "Ori") or [month_dir])
            paths[CacheCategory.VIDEO_THUMB].extend(
                _existing(month_dir / "Thumb", month_dir / "ThumbTemp")
            )

        for month_dir in get_date_subdirs(data_root / "Ptt"):
            paths[CacheCategory.PTT].extend(
                _existing(month_dir / "Ori", month_dir / "OriTemp") or [month_dir]
            )

        for month_dir in get_date_subdirs(data_root / "Pic"):
            paths[CacheCategory.PIC].extend(_existing(month_dir / "Ori") or [month_dir])

        file_root = data_root / "File"
        paths[CacheCategory.FILE].extend(
            _existing(file_root / "Ori", file_root / "Thumb", file_root / "ThumbTemp")
        )

        paths[CacheCategory.LOG].extend(_existing(data_root / "log"))
        paths[CacheCategory.LOG_CACHE].extend(_existing(data_root / "log-cache"))

        temp_dir = self.layout.resolve_temp_dir(base, uin)
        if temp_dir is not None:
            paths[CacheCategory.NT_TEMP].append(temp_dir)

        napcat_root = base / "NapCat"
        paths[CacheCategory.NAPCAT_DATA].extend(_existing(napcat_root / "data"))
        paths[CacheCategory.NAPCAT_TEMP].extend(_existing(napcat_root / "temp"))

        return paths
