"""Operations exposed to the API / CLI glue layer."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

from ntcleaner.engine import CleanEngine
from ntcleaner.models import (
    AccountListing,
    AccountRunResult,
    AccountStatsReport,
    AccountSummary,
    CleanerConfig,
    CleanOptions,
    RunSummary,
    ScheduleTask,
    parse_int,
)
from ntcleaner.scheduler import Scheduler
from ntcleaner.store import TaskStore

logger = logging.getLogger(__name__)


class TaskNotFoundError(LookupError):
    """No scheduled task has the requested id."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class CleanerService:
    """Account, clean, config and schedule operations for one data directory."""

    def __init__(
        self,
        engine: CleanEngine,
        store: TaskStore,
        scheduler: Scheduler,
        data_path: Path,
        self_uin: Optional[str] = None,
    ) -> None:
        self.engine = engine
        self.store = store
        self.scheduler = scheduler
        self.data_path = Path(data_path)
        self.self_uin = self_uin

    # -------------------------------------------------------------------------
    # Accounts and stats
    # -------------------------------------------------------------------------

    def list_accounts(self) -> AccountListing:
        """All known accounts with their full cache inventory."""
        accounts = self.engine.get_all_accounts(self.data_path)
        logger.info("Found %d accounts under %s", len(accounts), self.data_path)

        return AccountListing(
            data_path=str(self.data_path),
            current_uin=self.self_uin,
            accounts=[
                AccountSummary(
                    uin=uin,
                    is_current=uin == self.self_uin,
                    stats=self.engine.scan_cache(self.data_path, uin, 0),
                )
                for uin in accounts
            ],
        )

    def get_account_stats(self, uin: str, retain_days: Any = 0) -> AccountStatsReport:
        """
        Inventory of one account, plus what a clean would reclaim.

        Args:
            uin: Account identifier
            retain_days: Retention window for the estimate; unparsable or
                non-positive values skip the estimate

        Raises:
            ValueError: If uin is empty
        """
        if not uin:
            raise ValueError("uin is required")

        days = max(parse_int(retain_days, 0), 0)
        stats = self.engine.scan_cache(self.data_path, uin, 0)
        estimated = self.engine.scan_cache(self.data_path, uin, days) if days > 0 else None

        return AccountStatsReport(uin=uin, retain_days=days, stats=stats, estimated_clean=estimated)

    def clean(
        self,
        accounts: Optional[list[str]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> RunSummary:
        """
        Clean a set of accounts now.

        Args:
            accounts: Target uins; None means the current account, an empty
                list means every known account
            options: Partial options merged over the default options

        Returns:
            RunSummary with per-account stats
        """
        if accounts is None:
            accounts = [self.self_uin] if self.self_uin else []
        if not accounts:
            accounts = self.engine.get_all_accounts(self.data_path)

        merged = self.resolve_options(options)
        logger.info(
            "Cleaning accounts %s, keeping %d days",
            ", ".join(accounts) or "(none)",
            merged.retain_days,
        )

        summary = RunSummary()
        for uin in accounts:
            stats = self.engine.execute_clean(self.data_path, uin, merged)
            summary.results.append(AccountRunResult(uin=uin, stats=stats))
        summary.finished_at = datetime.now()

        logger.info("Clean finished: %s", summary.summary)
        return summary

    def resolve_options(self, options: Optional[Mapping[str, Any]]) -> CleanOptions:
        return self.store.default_options.merged(options)

    # -------------------------------------------------------------------------
    # Config
    # -------------------------------------------------------------------------

    def get_config(self) -> CleanerConfig:
        return self.store.config

    def set_default_options(self, partial: Mapping[str, Any]) -> CleanOptions:
        """Merge partial options into the persisted defaults."""
        return self.store.update_default_options(partial)

    # -------------------------------------------------------------------------
    # Schedules
    # -------------------------------------------------------------------------

    def list_tasks(self) -> list[ScheduleTask]:
        return list(self.store.tasks)

    def get_task(self, task_id: str) -> ScheduleTask:
        task = self.store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def create_task(self, data: Mapping[str, Any]) -> ScheduleTask:
        return self.scheduler.create_task(data)

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> ScheduleTask:
        task = self.scheduler.update_task(task_id, changes)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def delete_task(self, task_id: str) -> None:
        if not self.scheduler.delete_task(task_id):
            raise TaskNotFoundError(task_id)

    def run_task(self, task_id: str) -> RunSummary:
        summary = self.scheduler.run_task_now(task_id)
        if summary is None:
            raise TaskNotFoundError(task_id)
        return summary
