"""JSON persistence of default options and scheduled tasks."""

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ntcleaner.models import CleanerConfig, CleanOptions, ScheduleTask, normalize_keys

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.ntcleaner/config.json").expanduser()


class TaskStore:
    """
    In-memory CleanerConfig backed by a JSON file.

    Every mutation rewrites the whole document.
    """

    def __init__(self, path: Path = DEFAULT_CONFIG_PATH) -> None:
        self.path = Path(path)
        self.config = CleanerConfig()

    def load(self) -> CleanerConfig:
        """Load configuration from disk, keeping defaults if missing or corrupt."""
        if not self.path.exists():
            self.config = CleanerConfig()
            return self.config

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            self.config = CleanerConfig.model_validate(data)
        except (json.JSONDecodeError, OSError, ValidationError) as e:
            logger.warning("Failed to load config %s: %s", self.path, e)
            self.config = CleanerConfig()

        return self.config

    def save(self) -> bool:
        """Save configuration to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self.config.to_json_dict(), f, indent=2, ensure_ascii=False)
            return True
        except OSError as e:
            logger.error("Failed to save config %s: %s", self.path, e)
            return False

    # -------------------------------------------------------------------------
    # Default options
    # -------------------------------------------------------------------------

    @property
    def default_options(self) -> CleanOptions:
        return self.config.default_options

    def update_default_options(self, partial: Mapping[str, Any]) -> CleanOptions:
        """Merge partial options into the defaults and persist."""
        self.config.default_options = self.config.default_options.merged(partial)
        self.save()
        return self.config.default_options

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    @property
    def tasks(self) -> list[ScheduleTask]:
        return self.config.schedule_tasks

    def task_ids(self) -> set[str]:
        return {task.id for task in self.tasks}

    def get_task(self, task_id: str) -> Optional[ScheduleTask]:
        """Get a task by ID."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def add_task(self, task: ScheduleTask) -> ScheduleTask:
        """Append a task and persist."""
        if task.id in self.task_ids():
            raise ValueError(f"Duplicate task id: {task.id}")
        self.tasks.append(task)
        self.save()
        return task

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Optional[ScheduleTask]:
        """
        Replace the fields present in changes and persist.

        Args:
            task_id: Task to update
            changes: Partial task (camelCase or field names); the id cannot change

        Returns:
            The updated task, or None if no task has that id
        """
        for index, task in enumerate(self.tasks):
            if task.id != task_id:
                continue
            data = task.model_dump()
            updates = normalize_keys(ScheduleTask, changes)
            updates.pop("id", None)
            if isinstance(updates.get("options"), Mapping):
                updates["options"] = task.options.merged(updates["options"])
            data.update(updates)
            updated = ScheduleTask.model_validate(data)
            self.tasks[index] = updated
            self.save()
            return updated
        return None

    def delete_task(self, task_id: str) -> bool:
        """Remove a task and persist. Returns False if not found."""
        for index, task in enumerate(self.tasks):
            if task.id == task_id:
                del self.tasks[index]
                self.save()
                return True
        return False
