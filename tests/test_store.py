"""Tests for JSON persistence of options and tasks."""

import json
import logging

import pytest

from ntcleaner.models import Frequency, ScheduleTask
from ntcleaner.store import TaskStore


@pytest.fixture
def store(config_path):
    store = TaskStore(config_path)
    store.load()
    return store


class TestLoad:
    def test_missing_file_gives_defaults(self, config_path):
        config = TaskStore(config_path).load()
        assert config.schedule_tasks == []
        assert config.default_options.retain_days == 7
        assert not config_path.exists()

    def test_corrupt_file_gives_defaults(self, config_path, caplog):
        config_path.parent.mkdir(parents=True)
        config_path.write_text("{not json")

        with caplog.at_level(logging.WARNING, logger="ntcleaner.store"):
            config = TaskStore(config_path).load()

        assert config.schedule_tasks == []
        assert "Failed to load config" in caplog.text

    def test_invalid_document_gives_defaults(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text(json.dumps({"scheduleTasks": [{"name": "no id"}]}))

        assert TaskStore(config_path).load().schedule_tasks == []

    def test_reads_camel_case_and_clamps(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text(
            json.dumps(
                {
                    "defaultOptions": {"retainDays": 3, "enablePic": False},
                    "scheduleTasks": [
                        {"id": "t1", "cronHour": 30, "frequency": "weekly", "frequencyValue": 8}
                    ],
                }
            )
        )

        config = TaskStore(config_path).load()

        assert config.default_options.retain_days == 3
        assert config.default_options.enable_pic is False
        task = config.schedule_tasks[0]
        assert task.cron_hour == 23
        assert task.frequency == Frequency.WEEKLY
        assert task.frequency_value == 1


class TestSave:
    def test_writes_camel_case_json(self, store, config_path):
        store.add_task(ScheduleTask(id="t1", name="Nightly"))

        data = json.loads(config_path.read_text(encoding="utf-8"))
        assert data["defaultOptions"]["retainDays"] == 7
        assert data["scheduleTasks"][0]["id"] == "t1"
        assert data["scheduleTasks"][0]["cronHour"] == 3

    def test_round_trip(self, store, config_path):
        store.add_task(ScheduleTask(id="t1", name="Nightly", accounts=["111"]))
        store.update_default_options({"retainDays": 2})

        reloaded = TaskStore(config_path)
        reloaded.load()
        assert reloaded.config == store.config

    def test_save_failure(self, tmp_path, caplog):
        store = TaskStore(tmp_path)
        with caplog.at_level(logging.ERROR, logger="ntcleaner.store"):
            assert store.save() is False
        assert "Failed to save config" in caplog.text


class TestTasks:
    def test_add_duplicate(self, store):
        store.add_task(ScheduleTask(id="t1"))
        with pytest.raises(ValueError):
            store.add_task(ScheduleTask(id="t1"))

    def test_get_task(self, store):
        store.add_task(ScheduleTask(id="t1", name="A"))
        assert store.get_task("t1").name == "A"
        assert store.get_task("missing") is None

    def test_update_merges_options(self, store):
        store.add_task(ScheduleTask(id="t1", options={"retain_days": 5, "enable_pic": False}))

        updated = store.update_task("t1", {"name": "Renamed", "options": {"retainDays": 1}})

        assert updated.name == "Renamed"
        assert updated.options.retain_days == 1
        assert updated.options.enable_pic is False
        assert store.get_task("t1") is updated

    def test_update_cannot_change_id(self, store):
        store.add_task(ScheduleTask(id="t1"))
        updated = store.update_task("t1", {"id": "other", "cronHour": 5})
        assert updated.id == "t1"
        assert updated.cron_hour == 5

    def test_update_revalidates(self, store):
        store.add_task(ScheduleTask(id="t1"))
        updated = store.update_task("t1", {"frequency": "interval", "frequencyValue": 0})
        assert updated.frequency_value == 3

    def test_update_missing(self, store):
        assert store.update_task("missing", {"name": "x"}) is None

    def test_delete(self, store, config_path):
        store.add_task(ScheduleTask(id="t1"))
        assert store.delete_task("t1") is True
        assert store.delete_task("t1") is False
        assert json.loads(config_path.read_text())["scheduleTasks"] == []

    def test_update_default_options(self, store):
        options = store.update_default_options({"enable_video": False})
        assert options.enable_video is False
        assert options.retain_days == 7
        assert store.default_options is options
