"""Tests for taskman utils: Priority, Task serialization and helpers."""

from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from taskman.utils import (
    Priority,
    Task,
    TaskParseError,
    format_time_ago,
    get_tasks_file,
    parse_due_date,
)


class TestPriority:
    """Test Priority ordering and parsing."""

    def test_ordering(self):
        """High > Medium > Low."""
        assert Priority.HIGH > Priority.MEDIUM > Priority.LOW
        assert sorted([Priority.MEDIUM, Priority.HIGH, Priority.LOW]) == [
            Priority.LOW,
            Priority.MEDIUM,
            Priority.HIGH,
        ]

    def test_label(self):
        assert Priority.LOW.label == "Low"
        assert Priority.MEDIUM.label == "Medium"
        assert Priority.HIGH.label == "High"

    def test_from_name_case_insensitive(self):
        assert Priority.from_name("High") == Priority.HIGH
        assert Priority.from_name("low") == Priority.LOW
        assert Priority.from_name(" MEDIUM ") == Priority.MEDIUM

    def test_from_name_unknown_defaults_to_medium(self):
        """Unknown names are tolerated rather than rejected."""
        assert Priority.from_name("urgent") == Priority.MEDIUM
        assert Priority.from_name("") == Priority.MEDIUM
        assert Priority.from_name(None) == Priority.MEDIUM

    def test_from_name_non_string_defaults_to_medium(self):
        """Numbers and booleans from a hand-edited file are not names."""
        assert Priority.from_name(3) == Priority.MEDIUM
        assert Priority.from_name(True) == Priority.MEDIUM
        assert Priority.from_name(["High"]) == Priority.MEDIUM


class TestTaskDefaults:
    """Test Task construction."""

    def test_defaults(self):
        before = datetime.now()
        task = Task(id=1, description="Write report")
        assert task.priority == Priority.MEDIUM
        assert task.category == "General"
        assert task.completed is False
        assert task.due_date is None
        assert before <= task.created_at <= datetime.now()

    def test_status(self):
        task = Task(id=1, description="x")
        assert task.status == "Pending"
        task.completed = True
        assert task.status == "Done"

    def test_is_overdue(self):
        task = Task(id=1, description="x", due_date=date.today() - timedelta(days=1))
        assert task.is_overdue
        task.completed = True
        assert not task.is_overdue

    def test_not_overdue_without_due_date_or_today(self):
        assert not Task(id=1, description="x").is_overdue
        assert not Task(id=2, description="y", due_date=date.today()).is_overdue


class TestTaskToDict:
    """Test Task serialization."""

    def test_fields_and_order(self):
        task = Task(
            id=3,
            description="Pay rent",
            priority=Priority.HIGH,
            category="Home",
            created_at=datetime(2024, 5, 1, 9, 30, 15),
            due_date=date(2024, 6, 1),
        )
        data = task.to_dict()
        assert list(data) == [
            "id",
            "description",
            "completed",
            "priority",
            "category",
            "created_at",
            "due_date",
        ]
        assert data == {
            "id": 3,
            "description": "Pay rent",
            "completed": False,
            "priority": "High",
            "category": "Home",
            "created_at": "2024-05-01 09:30:15",
            "due_date": "2024-06-01",
        }

    def test_no_due_date_is_null(self):
        assert Task(id=1, description="x").to_dict()["due_date"] is None


class TestTaskFromDict:
    """Test Task deserialization."""

    def _record(self, **overrides):
        record = {
            "id": 1,
            "description": "Write report",
            "completed": False,
            "priority": "Low",
            "category": "Work",
            "created_at": "2024-05-01 09:30:15",
            "due_date": None,
        }
        record.update(overrides)
        return record

    def test_round_trip(self):
        """Values survive serialization up to second precision."""
        task = Task(
            id=7,
            description="Round trip",
            priority=Priority.HIGH,
            category="Tests",
            completed=True,
            due_date=date(2025, 1, 1),
        )
        restored = Task.from_dict(task.to_dict())
        assert restored.id == task.id
        assert restored.description == task.description
        assert restored.priority == task.priority
        assert restored.category == task.category
        assert restored.completed == task.completed
        assert restored.due_date == task.due_date
        assert restored.created_at == task.created_at.replace(microsecond=0)

    def test_parses_record(self):
        task = Task.from_dict(self._record(due_date="2024-06-01"))
        assert task.priority == Priority.LOW
        assert task.created_at == datetime(2024, 5, 1, 9, 30, 15)
        assert task.due_date == date(2024, 6, 1)

    def test_unknown_priority_defaults_to_medium(self):
        task = Task.from_dict(self._record(priority="Critical"))
        assert task.priority == Priority.MEDIUM

    def test_non_string_priority_defaults_to_medium(self):
        assert Task.from_dict(self._record(priority=3)).priority == Priority.MEDIUM
        assert Task.from_dict(self._record(priority=True)).priority == Priority.MEDIUM

    def test_bad_created_at_raises(self):
        with pytest.raises(TaskParseError):
            Task.from_dict(self._record(created_at="2024-05-01T09:30:15"))

    def test_bad_due_date_raises(self):
        with pytest.raises(TaskParseError):
            Task.from_dict(self._record(due_date="June 1st"))

    def test_missing_field_raises(self):
        record = self._record()
        del record["description"]
        with pytest.raises(TaskParseError, match="description"):
            Task.from_dict(record)

    def test_invalid_id_raises(self):
        with pytest.raises(TaskParseError):
            Task.from_dict(self._record(id=0))
        with pytest.raises(TaskParseError):
            Task.from_dict(self._record(id="1"))

    def test_not_a_dict_raises(self):
        with pytest.raises(TaskParseError):
            Task.from_dict(["not", "a", "record"])

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            Task.from_dict(self._record(completed="yes"))


class TestParseDueDate:
    """Test due date parsing."""

    def test_valid(self):
        assert parse_due_date("2024-06-01") == date(2024, 6, 1)

    def test_surrounding_whitespace(self):
        assert parse_due_date(" 2024-06-01 ") == date(2024, 6, 1)

    def test_invalid(self):
        assert parse_due_date("2024-13-01") is None
        assert parse_due_date("01/06/2024") is None
        assert parse_due_date("tomorrow") is None
        assert parse_due_date("") is None


class TestGetTasksFile:
    """Test tasks file resolution."""

    def test_explicit_path_wins(self, monkeypatch):
        monkeypatch.setenv("TASKMAN_FILE", "/tmp/env-tasks.json")
        assert get_tasks_file("mine.json") == Path("mine.json")

    def test_env_var(self, monkeypatch):
        monkeypatch.setenv("TASKMAN_FILE", "/tmp/env-tasks.json")
        assert get_tasks_file() == Path("/tmp/env-tasks.json")

    def test_default(self, monkeypatch):
        monkeypatch.delenv("TASKMAN_FILE", raising=False)
        assert get_tasks_file() == Path("tasks.json")


class TestFormatTimeAgo:
    """Test human-readable time deltas."""

    def test_just_now(self):
        assert format_time_ago(datetime.now()) == "just now"

    def test_minutes(self):
        assert format_time_ago(datetime.now() - timedelta(minutes=5, seconds=10)) == "5m ago"

    def test_hours(self):
        assert format_time_ago(datetime.now() - timedelta(hours=3, minutes=5)) == "3h ago"

    def test_days(self):
        assert format_time_ago(datetime.now() - timedelta(days=4, hours=2)) == "4d ago"

    def test_old_dates_fall_back_to_date(self):
        dt = datetime(2020, 1, 2, 12, 0)
        assert format_time_ago(dt) == "2020-01-02"
