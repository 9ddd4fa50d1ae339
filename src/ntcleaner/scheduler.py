"""Recurring clean tasks: next-run computation and self re-arming timers."""

import logging
import random
import threading
import time
from datetime import datetime, timedelta
from functools import partial
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional

from ntcleaner.engine import CleanEngine
from ntcleaner.models import (
    AccountRunResult,
    CleanOptions,
    Frequency,
    RunSummary,
    ScheduleTask,
    TaskState,
    normalize_keys,
)
from ntcleaner.store import TaskStore

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Same shape as threading.Timer: factory(interval_seconds, function) -> timer
# object with start() and cancel()
TimerFactory = Callable[[float, Callable[[], None]], Any]
Clock = Callable[[], datetime]


def _to_base36(value: int) -> str:
    digits = []
    while True:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
        if value == 0:
            return "".join(reversed(digits))


def generate_task_id(existing: Iterable[str] = ()) -> str:
    """Millisecond timestamp in base 36 plus a 6-character random suffix."""
    taken = set(existing)
    while True:
        stamp = _to_base36(time.time_ns() // 1_000_000)
        candidate = stamp + "".join(random.choices(_BASE36, k=6))
        if candidate not in taken:
            return candidate


def sunday_first_weekday(moment: datetime) -> int:
    """Weekday index with Sunday=0 ... Saturday=6."""
    return (moment.weekday() + 1) % 7


def _as_local_naive(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def compute_next_run(task: ScheduleTask, now: datetime) -> datetime:
    """
    Compute when a task should next fire.

    Args:
        task: Task with trigger time and recurrence policy
        now: Current local time

    Returns:
        The next fire time, always strictly after now
    """
    now = _as_local_naive(now)
    next_run = now.replace(hour=task.cron_hour, minute=task.cron_minute, second=0, microsecond=0)
    if next_run <= now:
        next_run += timedelta(days=1)

    if task.frequency == Frequency.WEEKLY:
        while sunday_first_weekday(next_run) != task.frequency_value:
            next_run += timedelta(days=1)
    elif task.frequency == Frequency.INTERVAL and task.last_run is not None:
        # A missed interval falls back to the next daily slot
        candidate = _as_local_naive(task.last_run) + timedelta(days=task.frequency_value)
        candidate = candidate.replace(
            hour=task.cron_hour, minute=task.cron_minute, second=0, microsecond=0
        )
        if candidate > now:
            next_run = candidate

    return next_run


def _thread_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class Scheduler:
    """
    Registry of scheduled tasks keyed by id.

    Each task is Idle (no timer), Armed (one timer pending) or Running. When
    a timer fires the task is re-read from the store, cleaned, and re-armed
    from the stored state if it is still enabled.
    """

    def __init__(
        self,
        engine: CleanEngine,
        store: TaskStore,
        base_dir: Path,
        timer_factory: TimerFactory = _thread_timer,
        clock: Clock = datetime.now,
    ) -> None:
        self.engine = engine
        self.store = store
        self.base_dir = Path(base_dir)
        self._timer_factory = timer_factory
        self._clock = clock
        self._timers: dict[str, tuple[object, Any]] = {}
        self._states: dict[str, TaskState] = {}
        self._next_runs: dict[str, datetime] = {}
        self._lock = threading.RLock()
        self._run_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def state(self, task_id: str) -> TaskState:
        """Current lifecycle state of a task."""
        with self._lock:
            return self._states.get(task_id, TaskState.IDLE)

    def next_run(self, task_id: str) -> Optional[datetime]:
        """When the armed timer for a task will fire, if any."""
        with self._lock:
            return self._next_runs.get(task_id)

    def armed_task_ids(self) -> list[str]:
        with self._lock:
            return list(self._timers)

    # -------------------------------------------------------------------------
    # Timers
    # -------------------------------------------------------------------------

    def setup(self, task: ScheduleTask) -> Optional[datetime]:
        """
        Arm the timer for a task, replacing any existing one.

        Args:
            task: Task to arm

        Returns:
            The next fire time, or None if the task is disabled
        """
        with self._lock:
            self.cancel(task.id)
            if not task.enabled:
                return None

            now = self._clock()
            next_run = compute_next_run(task, now)
            # Elapsed time, not wall-clock difference, so DST shifts are honoured
            delay = max(next_run.timestamp() - now.timestamp(), 0.0)

            token = object()
            timer = self._timer_factory(delay, partial(self._fire, task.id, token))
            self._timers[task.id] = (token, timer)
            self._next_runs[task.id] = next_run
            if self._states.get(task.id) != TaskState.RUNNING:
                self._states[task.id] = TaskState.ARMED
            timer.start()

        logger.info(
            "Task [%s] (%s) scheduled for %s",
            task.name,
            task.frequency.value,
            next_run.strftime("%Y-%m-%d %H:%M"),
        )
        return next_run

    def cancel(self, task_id: str) -> None:
        """Clear any pending timer for a task."""
        with self._lock:
            entry = self._timers.pop(task_id, None)
            self._next_runs.pop(task_id, None)
            if entry is not None:
                entry[1].cancel()
                logger.debug("Cancelled timer for task %s", task_id)
            if self._states.get(task_id) != TaskState.RUNNING:
                self._states.pop(task_id, None)

    def cancel_all(self) -> None:
        """Clear every pending timer."""
        with self._lock:
            for task_id in list(self._timers):
                self.cancel(task_id)

    def init_all(self) -> None:
        """Arm every stored task."""
        for task in list(self.store.tasks):
            self.setup(task)

    def _fire(self, task_id: str, token: object) -> None:
        with self._lock:
            entry = self._timers.get(task_id)
            if entry is None or entry[0] is not token:
                return
            del self._timers[task_id]
            self._next_runs.pop(task_id, None)
            self._states[task_id] = TaskState.RUNNING

        try:
            task = self.store.get_task(task_id)
            if task is not None and task.enabled:
                self.run_task(task)
        except Exception:
            logger.exception("Scheduled run of task %s failed", task_id)
        finally:
            with self._lock:
                self._states.pop(task_id, None)
                current = self.store.get_task(task_id)
                if current is not None and current.enabled:
                    self.setup(current)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def run_task(self, task: ScheduleTask) -> RunSummary:
        """
        Clean every target account of a task and record the outcome.

        A failure on one account is logged and recorded; the other accounts
        are still cleaned.

        Args:
            task: Task to run

        Returns:
            RunSummary with per-account results
        """
        with self._run_lock:
            logger.info("Running task [%s]", task.name)
            accounts = task.accounts or self.engine.get_all_accounts(self.base_dir)
            summary = RunSummary(task_id=task.id, started_at=self._clock())

            for uin in accounts:
                try:
                    stats = self.engine.execute_clean(self.base_dir, uin, task.options)
                    summary.results.append(AccountRunResult(uin=uin, stats=stats))
                except Exception as e:
                    logger.exception("Cleaning account %s failed", uin)
                    summary.results.append(AccountRunResult(uin=uin, error=str(e) or type(e).__name__))

            summary.finished_at = self._clock()
            self.store.update_task(
                task.id,
                {"last_run": summary.finished_at, "last_result": summary.summary},
            )

        logger.info("Task [%s] finished: %s", task.name, summary.summary)
        return summary

    # -------------------------------------------------------------------------
    # Task lifecycle
    # -------------------------------------------------------------------------

    def create_task(self, data: Mapping[str, Any]) -> ScheduleTask:
        """
        Create, persist and arm a task.

        Missing fields get defaults; options are merged over the store's
        default options, and a top-level retain days value overrides theirs.
        """
        fields = normalize_keys(ScheduleTask, data)
        retain_days = fields.pop("retain_days", fields.pop("retainDays", None))

        options = fields.pop("options", None)
        if not isinstance(options, CleanOptions):
            options = self.store.default_options.merged(options)
        if retain_days is not None:
            options = options.merged({"retain_days": retain_days})

        if not fields.get("name"):
            fields.pop("name", None)
        fields.pop("last_run", None)
        fields.pop("last_result", None)
        fields["id"] = generate_task_id(self.store.task_ids())
        fields["options"] = options

        task = ScheduleTask.model_validate(fields)
        self.store.add_task(task)
        self.setup(task)
        logger.info("Created task [%s] (%s)", task.name, task.id)
        return task

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Optional[ScheduleTask]:
        """Merge changes into a task, persist and re-arm it. None if not found."""
        task = self.store.update_task(task_id, changes)
        if task is None:
            return None
        self.setup(task)
        return task

    def delete_task(self, task_id: str) -> bool:
        """Cancel and remove a task. False if not found."""
        if self.store.get_task(task_id) is None:
            return False
        self.cancel(task_id)
        return self.store.delete_task(task_id)

    def run_task_now(self, task_id: str) -> Optional[RunSummary]:
        """Run a task immediately without touching its timer. None if not found."""
        task = self.store.get_task(task_id)
        if task is None:
            return None
        return self.run_task(task)
