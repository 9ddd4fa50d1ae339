"""Tests for the service operations."""

import pytest

from conftest import OTHER_UIN, UIN, windows_data_root, write_file
from ntcleaner.engine import CleanEngine
from ntcleaner.models import CacheCategory
from ntcleaner.paths import PathResolver, WindowsLayout
from ntcleaner.scheduler import Scheduler
from ntcleaner.service import CleanerService, TaskNotFoundError
from ntcleaner.store import TaskStore


def build_service(data_path, config_path, timers, clock, self_uin=UIN) -> CleanerService:
    engine = CleanEngine(PathResolver(WindowsLayout()))
    store = TaskStore(config_path)
    store.load()
    scheduler = Scheduler(engine, store, data_path, timer_factory=timers, clock=clock)
    return CleanerService(engine, store, scheduler, data_path, self_uin=self_uin)


@pytest.fixture
def service(data_path, config_path, timers, clock):
    return build_service(data_path, config_path, timers, clock)


@pytest.fixture
def two_accounts(data_path):
    """Each account has one stale and one fresh log file."""
    files = {}
    for uin in (UIN, OTHER_UIN):
        log_dir = windows_data_root(data_path, uin) / "log"
        files[uin] = (
            write_file(log_dir / "old.log", 100, age_days=10),
            write_file(log_dir / "new.log", 10),
        )
    return files


class TestListAccounts:
    def test_lists_with_inventory(self, service, two_accounts, data_path):
        listing = service.list_accounts()

        assert listing.data_path == str(data_path)
        assert listing.current_uin == UIN
        assert [a.uin for a in listing.accounts] == [UIN, OTHER_UIN]
        assert listing.accounts[0].is_current is True
        assert listing.accounts[1].is_current is False
        assert listing.accounts[0].stats.total_size == 110

    def test_no_accounts(self, service):
        assert service.list_accounts().accounts == []


class TestGetAccountStats:
    def test_requires_uin(self, service):
        with pytest.raises(ValueError):
            service.get_account_stats("")

    def test_inventory_only(self, service, two_accounts):
        report = service.get_account_stats(UIN)
        assert report.stats.get(CacheCategory.LOG).files == 2
        assert report.estimated_clean is None

    def test_with_estimate(self, service, two_accounts):
        report = service.get_account_stats(UIN, "7")
        assert report.retain_days == 7
        assert report.estimated_clean.total_files == 1
        assert report.estimated_clean.total_size == 100

    def test_unparsable_days_skips_estimate(self, service, two_accounts):
        report = service.get_account_stats(UIN, "abc")
        assert report.retain_days == 0
        assert report.estimated_clean is None


class TestClean:
    def test_defaults_to_current_account(self, service, two_accounts):
        summary = service.clean()

        assert [r.uin for r in summary.results] == [UIN]
        assert summary.total_files == 1
        assert not two_accounts[UIN][0].exists()
        assert two_accounts[OTHER_UIN][0].exists()
        assert summary.finished_at is not None

    def test_empty_list_means_all(self, service, two_accounts):
        summary = service.clean([])
        assert [r.uin for r in summary.results] == [UIN, OTHER_UIN]
        assert summary.total_size == 200

    def test_no_current_account_means_all(self, data_path, config_path, timers, clock, two_accounts):
        service = build_service(data_path, config_path, timers, clock, self_uin=None)
        assert len(service.clean().results) == 2

    def test_options_override_defaults(self, service, two_accounts):
        summary = service.clean([OTHER_UIN], {"enableLog": False})
        assert summary.total_files == 0
        assert two_accounts[OTHER_UIN][0].exists()

    def test_retention_override(self, service, two_accounts):
        service.set_default_options({"retain_days": 30})
        assert service.clean([UIN]).total_files == 0
        assert service.clean([UIN], {"retainDays": 5}).total_files == 1


class TestConfig:
    def test_set_default_options_persists(self, service, config_path, data_path, timers, clock):
        service.set_default_options({"enablePic": False})

        assert service.get_config().default_options.enable_pic is False
        reloaded = build_service(data_path, config_path, timers, clock)
        assert reloaded.get_config().default_options.enable_pic is False

    def test_resolve_options(self, service):
        assert service.resolve_options({"retainDays": 1}).retain_days == 1
        assert service.resolve_options(None).retain_days == 7


class TestSchedules:
    def test_create_list_get(self, service):
        created = service.create_task({"name": "Nightly", "accounts": [UIN]})

        assert [t.id for t in service.list_tasks()] == [created.id]
        assert service.get_task(created.id).name == "Nightly"

    def test_update(self, service):
        created = service.create_task({"name": "Nightly"})
        updated = service.update_task(created.id, {"frequency": "weekly", "frequencyValue": 3})
        assert updated.frequency.value == "weekly"
        assert updated.frequency_value == 3

    def test_delete(self, service):
        created = service.create_task({"name": "Nightly"})
        service.delete_task(created.id)
        assert service.list_tasks() == []

    def test_run(self, service, two_accounts):
        created = service.create_task({"name": "Nightly", "retainDays": 7})

        summary = service.run_task(created.id)

        assert summary.task_id == created.id
        assert summary.total_files == 2
        assert service.get_task(created.id).last_result == summary.summary

    @pytest.mark.parametrize("operation", ["get_task", "delete_task", "run_task"])
    def test_missing_task(self, service, operation):
        with pytest.raises(TaskNotFoundError) as exc_info:
            getattr(service, operation)("missing")
        assert exc_info.value.task_id == "missing"

    def test_update_missing_task(self, service):
        with pytest.raises(TaskNotFoundError):
            service.update_task("missing", {"name": "x"})
