"""Utility functions and classes for the taskman package.

This module contains:
- Data classes: Priority, Task
- Constants: timestamp formats, PRIORITY_STYLES, STATUS_EMOJIS
- Error taxonomy: TaskmanError and friends
- Date parsing and display helpers
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Optional

# =============================================================================
# Constants
# =============================================================================

CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"
DUE_DATE_FORMAT = "%Y-%m-%d"
DISPLAY_CREATED_FORMAT = "%Y-%m-%d %H:%M"

DEFAULT_CATEGORY = "General"
DEFAULT_TASKS_FILE = "tasks.json"
TASKS_FILE_ENV = "TASKMAN_FILE"

SORT_KEYS = ["id", "priority", "due_date"]
STATUS_FILTERS = ["all", "pending", "done"]

# (suffix, seconds) from largest to smallest, for format_time_ago
TIME_AGO_UNITS = [("d", 86400), ("h", 3600), ("m", 60)]

# Priority styling for rich output
PRIORITY_STYLES = {
    "High": "red",
    "Medium": "yellow",
    "Low": "green",
}

STATUS_EMOJIS = {
    "done": "✅",
    "pending": "🆕",
    "overdue": "⚠️",
}


# =============================================================================
# Errors
# =============================================================================


class TaskmanError(Exception):
    """Base exception for taskman errors."""


class TaskParseError(TaskmanError, ValueError):
    """Raised when a stored task record cannot be deserialized."""


class StorageCorruptError(TaskmanError):
    """Raised when the tasks file exists but its contents are unusable."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Could not parse tasks file {path}: {reason}")
        self.path = path
        self.reason = reason


class StorageWriteError(TaskmanError):
    """Raised when the tasks file cannot be written."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Could not write tasks file {path}: {reason}")
        self.path = path
        self.reason = reason


class ValidationError(TaskmanError):
    """Raised when command input is invalid (empty description, bad id)."""


class InvalidDueDateWarning(UserWarning):
    """Emitted when a due date string cannot be parsed and is dropped."""


# =============================================================================
# Data Classes
# =============================================================================


class Priority(IntEnum):
    """Task priority. Ordered so that HIGH > MEDIUM > LOW."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def label(self) -> str:
        """Canonical name used in storage and output, e.g. "Medium"."""
        return self.name.capitalize()

    @classmethod
    def from_name(cls, name: Any) -> "Priority":
        """Parse a priority name, case-insensitively.

        Unknown, missing or non-string values fall back to MEDIUM.
        """
        if not isinstance(name, str) or not name:
            return cls.MEDIUM
        try:
            return cls[name.strip().upper()]
        except KeyError:
            return cls.MEDIUM


@dataclass
class Task:
    """A single tracked task.

    Attributes:
        id: Positive integer, unique within a store
        description: What needs doing
        priority: Low, Medium or High
        category: Free-text grouping
        completed: Whether the task is done
        created_at: When the task was created (never modified)
        due_date: Optional calendar date
    """

    id: int
    description: str
    priority: Priority = Priority.MEDIUM
    category: str = DEFAULT_CATEGORY
    completed: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    due_date: Optional[date] = None

    @property
    def status(self) -> str:
        return "Done" if self.completed else "Pending"

    @property
    def is_overdue(self) -> bool:
        """Check if a pending task is past its due date."""
        if self.completed or self.due_date is None:
            return False
        return self.due_date < date.today()

    @property
    def created_ago(self) -> str:
        return format_time_ago(self.created_at)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary.

        Key order is stable: id, description, completed, priority, category,
        created_at, due_date.
        """
        return {
            "id": self.id,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority.label,
            "category": self.category,
            "created_at": self.created_at.strftime(CREATED_AT_FORMAT),
            "due_date": (
                self.due_date.strftime(DUE_DATE_FORMAT) if self.due_date else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Deserialize a record produced by to_dict.

        Raises:
            TaskParseError: If a field is missing, has the wrong type, or a
                timestamp is not in the expected format.
        """
        if not isinstance(data, dict):
            raise TaskParseError(f"Task record must be an object, got {type(data).__name__}")

        try:
            task_id = data["id"]
            description = data["description"]
            completed = data["completed"]
            created_raw = data["created_at"]
            due_raw = data.get("due_date")
        except KeyError as e:
            raise TaskParseError(f"Missing field: {e.args[0]}") from e

        if not isinstance(task_id, int) or isinstance(task_id, bool) or task_id <= 0:
            raise TaskParseError(f"Invalid id: {task_id!r}")
        if not isinstance(description, str):
            raise TaskParseError(f"Invalid description for task {task_id}")
        if not isinstance(completed, bool):
            raise TaskParseError(f"Invalid completed flag for task {task_id}")

        try:
            created_at = datetime.strptime(str(created_raw), CREATED_AT_FORMAT)
        except ValueError as e:
            raise TaskParseError(
                f"Invalid created_at for task {task_id}: {created_raw!r}"
            ) from e

        due: Optional[date] = None
        if due_raw is not None:
            due = parse_due_date(str(due_raw))
            if due is None:
                raise TaskParseError(f"Invalid due_date for task {task_id}: {due_raw!r}")

        return cls(
            id=task_id,
            description=description,
            priority=Priority.from_name(data.get("priority")),
            category=str(data.get("category") or DEFAULT_CATEGORY),
            completed=completed,
            created_at=created_at,
            due_date=due,
        )


# =============================================================================
# Helpers
# =============================================================================


def parse_due_date(value: str) -> Optional[date]:
    """Parse a YYYY-MM-DD string into a date, or None if it doesn't parse."""
    try:
        return datetime.strptime(value.strip(), DUE_DATE_FORMAT).date()
    except ValueError:
        return None


def get_tasks_file(path: Optional[str] = None) -> Path:
    """Resolve the backing tasks file.

    Uses the explicit path if given, then the TASKMAN_FILE environment
    variable, then tasks.json in the current directory.
    """
    if path:
        return Path(path)
    if env_path := os.environ.get(TASKS_FILE_ENV):
        return Path(env_path)
    return Path(DEFAULT_TASKS_FILE)


def format_time_ago(dt: datetime) -> str:
    """Describe how long ago a creation timestamp was, e.g. "3h ago".

    Anything older than 30 days is shown as its date instead.
    """
    seconds = (datetime.now() - dt).total_seconds()
    if seconds >= timedelta(days=30).total_seconds():
        return dt.strftime(DUE_DATE_FORMAT)
    for unit, size in TIME_AGO_UNITS:
        if seconds >= size:
            return f"{int(seconds // size)}{unit} ago"
    return "just now"
