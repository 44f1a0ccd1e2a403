"""Core business logic for the taskman package.

This module contains the task store that sits between
the CLI layer (cli.py) and utility functions (utils.py).

Architecture:
- cli.py: Click command, output formatting, user interaction
- lib.py: Task persistence, id assignment, sorting and filtering
- utils.py: Data classes, errors, pure helpers

The store is a plain JSON array on disk. Every mutation rewrites the whole
file, after first copying the previous version to `<path>.bak`.
"""

import json
import logging
import shutil
import warnings
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Union

from taskman.utils import (
    DEFAULT_CATEGORY,
    InvalidDueDateWarning,
    Priority,
    StorageCorruptError,
    StorageWriteError,
    Task,
    TaskParseError,
    parse_due_date,
)

logger = logging.getLogger(__name__)


def backup_path(path: Path) -> Path:
    """Return the backup sibling for a tasks file (tasks.json -> tasks.json.bak)."""
    return path.with_name(path.name + ".bak")


def atomic_write_json(path: Path, data: object, indent: int = 4) -> None:
    """Write JSON data to a file atomically.

    Writes to a temporary file first, then renames to the target path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(data, indent=indent, ensure_ascii=False) + "\n", encoding="utf-8")
    tmp_path.replace(path)


class TaskStore:
    """Persistent task store backed by a JSON file.

    Tasks are loaded once on construction. Each mutating operation
    (add, complete, delete, clear) saves the full collection before
    returning.

    Non-fatal problems are recorded rather than raised:
    - load_error: a StorageCorruptError if the file could not be parsed
    - last_save_error: a StorageWriteError if the most recent save failed

    Example:
        >>> store = TaskStore(Path("tasks.json"))
        >>> task_id = store.add("Write report", priority=Priority.HIGH)
        >>> store.complete(task_id)
        True
        >>> [t.id for t in store.list_tasks(sort_by="priority")]
        [1]
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._tasks: List[Task] = []
        self._next_id = 1
        self.load_error: Optional[StorageCorruptError] = None
        self.last_save_error: Optional[StorageWriteError] = None
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._tasks)

    # ---- persistence ----

    def load(self) -> None:
        """Load tasks from the backing file.

        A missing or empty file gives an empty store. A file that can't be
        parsed is logged and ignored: the store starts empty and the file is
        left on disk until the next save overwrites it.
        """
        self._tasks = []
        self._next_id = 1
        self.load_error = None

        if not self._path.exists():
            logger.debug(f"No tasks file at {self._path}, starting empty")
            return

        try:
            content = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._reset_corrupt(str(e))
            return

        if not content.strip():
            return

        try:
            data = json.loads(content)
        except (json.JSONDecodeError, RecursionError) as e:
            self._reset_corrupt(f"invalid JSON ({type(e).__name__})")
            return

        if not isinstance(data, list):
            self._reset_corrupt(f"expected a list of tasks, got {type(data).__name__}")
            return

        try:
            tasks = [Task.from_dict(item) for item in data]
        except TaskParseError as e:
            self._reset_corrupt(str(e))
            return

        self._tasks = tasks
        self._next_id = max((t.id for t in tasks), default=0) + 1
        logger.debug(f"Loaded {len(tasks)} tasks from {self._path}")

    def _reset_corrupt(self, reason: str) -> None:
        # Availability over durability: keep running with an empty store.
        self.load_error = StorageCorruptError(self._path, reason)
        logger.warning(f"{self.load_error}; starting with an empty task list")
        self._tasks = []
        self._next_id = 1

    def save(self) -> bool:
        """Persist all tasks, backing up the previous file first.

        Returns:
            True if saved, False if writing failed (see last_save_error).
        """
        self.last_save_error = None
        try:
            if self._path.exists():
                shutil.copyfile(self._path, backup_path(self._path))
            atomic_write_json(self._path, [t.to_dict() for t in self._tasks])
        except OSError as e:
            self.last_save_error = StorageWriteError(self._path, str(e))
            logger.error(f"{self.last_save_error}; changes are not saved")
            return False
        logger.debug(f"Saved {len(self._tasks)} tasks to {self._path}")
        return True

    # ---- mutations ----

    def add(
        self,
        description: str,
        due_date: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        category: str = DEFAULT_CATEGORY,
    ) -> int:
        """Add a new task.

        Args:
            description: Task description (validated by the caller).
            due_date: Optional due date as YYYY-MM-DD. If it doesn't parse,
                an InvalidDueDateWarning is emitted and the task is added
                without a due date.
            priority: Task priority.
            category: Task category.

        Returns:
            The id assigned to the new task.
        """
        due: Optional[date] = None
        if due_date:
            due = parse_due_date(due_date)
            if due is None:
                warnings.warn(
                    InvalidDueDateWarning(
                        f"Invalid due date {due_date!r} (expected YYYY-MM-DD), ignoring due date"
                    ),
                    stacklevel=2,
                )

        task = Task(
            id=self._next_id,
            description=description,
            priority=priority,
            category=category,
            due_date=due,
        )
        self._tasks.append(task)
        self._next_id += 1
        logger.debug(f"Added task {task.id}: {task.description}")
        self.save()
        return task.id

    def complete(self, task_id: int) -> bool:
        """Mark a task as completed.

        Returns:
            True if updated, False if task not found.
        """
        task = self.get(task_id)
        if task is None:
            return False
        task.completed = True
        self.save()
        return True

    def delete(self, task_id: int) -> bool:
        """Delete a task. Remaining ids and next_id are left unchanged.

        Returns:
            True if deleted, False if not found.
        """
        task = self.get(task_id)
        if task is None:
            return False
        self._tasks.remove(task)
        self.save()
        return True

    def clear(self) -> None:
        """Remove all tasks and reset id assignment to 1."""
        self._tasks = []
        self._next_id = 1
        self.save()

    # ---- queries ----

    def get(self, task_id: int) -> Optional[Task]:
        """Get a task by ID."""
        return next((t for t in self._tasks if t.id == task_id), None)

    def list_tasks(
        self,
        sort_by: str = "id",
        category: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Task]:
        """List tasks, optionally filtered, in the requested order.

        Args:
            sort_by: "id" (insertion order), "priority" (High first, stable)
                or "due_date" (earliest first, undated last by id).
            category: Only tasks in this category (case-insensitive).
            status: "pending", "done", or None/"all".

        Returns:
            A new list; the store's own order is not changed.
        """
        tasks = list(self._tasks)

        if category:
            wanted = category.casefold()
            tasks = [t for t in tasks if t.category.casefold() == wanted]
        if status == "pending":
            tasks = [t for t in tasks if not t.completed]
        elif status == "done":
            tasks = [t for t in tasks if t.completed]
        elif status not in (None, "all"):
            raise ValueError(f"Unknown status filter: {status}")

        if sort_by == "id":
            pass
        elif sort_by == "priority":
            tasks.sort(key=lambda t: t.priority, reverse=True)
        elif sort_by == "due_date":
            tasks.sort(key=lambda t: (t.due_date is None, t.due_date or date.min, t.id))
        else:
            raise ValueError(f"Unknown sort key: {sort_by}")

        return tasks

    def counts(self, tasks: Optional[List[Task]] = None) -> Dict[str, int]:
        """Count tasks by status.

        Counts the whole store, or the given subset (e.g. a filtered listing).
        """
        if tasks is None:
            tasks = self._tasks
        done = sum(1 for t in tasks if t.completed)
        return {
            "total": len(tasks),
            "done": done,
            "pending": len(tasks) - done,
            "overdue": sum(1 for t in tasks if t.is_overdue),
        }
