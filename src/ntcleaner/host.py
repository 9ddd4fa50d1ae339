"""Host environment contract and the cleaner session lifecycle."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from ntcleaner.engine import CleanEngine
from ntcleaner.models import LoginEntry
from ntcleaner.paths import IdentityCache, LinuxLayout, PathResolver, detect_layout, hash_dir_for
from ntcleaner.scanner import dir_exists
from ntcleaner.scheduler import Clock, Scheduler, TimerFactory
from ntcleaner.service import CleanerService
from ntcleaner.store import TaskStore

LoginListProvider = Callable[[], Iterable[LoginEntry]]


@dataclass
class HostEnvironment:
    """What the embedding application supplies."""

    data_path: Path
    config_path: Path
    self_uin: Optional[str] = None
    self_uid: Optional[str] = None
    login_list: Optional[LoginListProvider] = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("ntcleaner"))
    layout: str = "auto"


@dataclass
class CleanerSession:
    """
    Wires the engine, store and scheduler for one host.

    Identity data lives in the session's own IdentityCache, so separate
    sessions never see each other's accounts.
    """

    host: HostEnvironment
    timer_factory: Optional[TimerFactory] = None
    clock: Optional[Clock] = None
    identity: IdentityCache = field(default_factory=IdentityCache)
    prepared: bool = False
    started: bool = False

    def __post_init__(self):
        """Build the components."""
        self.log = self.host.logger
        self.layout = detect_layout(self.identity, self.host.layout)
        self.resolver = PathResolver(self.layout)
        self.engine = CleanEngine(self.resolver)
        self.store = TaskStore(self.host.config_path)

        scheduler_kwargs = {}
        if self.timer_factory is not None:
            scheduler_kwargs["timer_factory"] = self.timer_factory
        if self.clock is not None:
            scheduler_kwargs["clock"] = self.clock
        self.scheduler = Scheduler(self.engine, self.store, self.host.data_path, **scheduler_kwargs)

        self.service = CleanerService(
            self.engine,
            self.store,
            self.scheduler,
            self.host.data_path,
            self_uin=self.host.self_uin,
        )

    def register_account(self, uin: str, uid: str) -> None:
        """Record a uin/uid pair and, on the Linux layout, cache its directory."""
        self.identity.remember_uid(uin, uid)
        if uin == self.host.self_uin:
            self.identity.current_uid = uid

        if isinstance(self.layout, LinuxLayout):
            hash_dir = hash_dir_for(self.host.data_path, uid)
            if dir_exists(hash_dir):
                self.identity.remember_hash_dir(uin, hash_dir)
                self.log.info("Cached data directory for account %s: %s", uin, hash_dir)
            else:
                self.log.warning("Data directory for account %s does not exist: %s", uin, hash_dir)

    def load_identities(self) -> int:
        """
        Fill the identity cache from the host login list.

        The host's own uin/uid is also registered whenever the list is
        unavailable, empty, or does not mention the current account.

        Returns:
            Number of accounts registered
        """
        count = 0
        if self.host.login_list is not None:
            try:
                for entry in self.host.login_list():
                    if entry.uin and entry.uid:
                        self.register_account(entry.uin, entry.uid)
                        count += 1
                self.log.info("Loaded %d accounts from login list", count)
            except Exception as e:
                self.log.warning("Failed to read login list: %s", e)

        self_uin, self_uid = self.host.self_uin, self.host.self_uid
        if self_uin and self_uid and self_uin not in self.identity.uin_to_uid:
            self.register_account(self_uin, self_uid)
            self.log.info("Using current account %s", self_uin)
            count += 1

        if count == 0:
            self.log.warning(
                "Current account identity incomplete: uin=%s, uid=%s",
                self_uin,
                self_uid,
            )
        return count

    def prepare(self) -> "CleanerSession":
        """Discover identities and load config, without arming timers."""
        if self.prepared:
            return self
        self.log.info("Cleaner starting (layout: %s)", self.engine.layout_name)
        self.log.info("Data path: %s", self.host.data_path)
        self.load_identities()
        self.store.load()
        self.prepared = True
        return self

    def start(self) -> "CleanerSession":
        """Prepare the session and arm every scheduled task."""
        if self.started:
            return self
        self.prepare()
        self.scheduler.init_all()
        self.started = True
        return self

    def stop(self) -> None:
        """Cancel every pending timer and forget discovered identities."""
        self.scheduler.cancel_all()
        self.identity.clear()
        self.prepared = False
        self.started = False
        self.log.info("Cleaner stopped")

    def __enter__(self) -> "CleanerSession":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()
