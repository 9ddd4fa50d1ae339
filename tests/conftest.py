"""Shared fixtures for ntcleaner tests."""

import os
import time
from datetime import datetime
from pathlib import Path

import pytest

UIN = "12345678"
OTHER_UIN = "87654321"
DAY = 86_400


def write_file(path: Path, size: int = 10, age_days: float = 0) -> Path:
    """Create a file of size bytes whose mtime is age_days in the past."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    if age_days:
        mtime = time.time() - age_days * DAY
        os.utime(path, (mtime, mtime))
    return path


def windows_data_root(base: Path, uin: str = UIN) -> Path:
    """Create and return <base>/<uin>/nt_qq/nt_data."""
    data_root = base / uin / "nt_qq" / "nt_data"
    data_root.mkdir(parents=True, exist_ok=True)
    return data_root


class FakeTimer:
    """Records what the scheduler armed instead of starting a thread."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True


class FakeTimerFactory:
    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, function):
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if t.started and not t.cancelled]


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def clock():
    # Monday
    return FakeClock(datetime(2025, 6, 2, 10, 0, 0))


@pytest.fixture
def data_path(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config" / "config.json"
