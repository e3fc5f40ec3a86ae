"""Tests for the task schema (schema.py)."""
from datetime import date, datetime, timezone

import pytest

from pkg.gtd.schema import (
    Task,
    TaskCategory,
    Priority,
    EditTaskData,
    parse_due_date,
)


class TestTaskCategory:

    def test_five_fixed_categories(self):
        assert [c.value for c in TaskCategory] == ["inbox", "next", "waiting", "scheduled", "someday"]

    def test_from_str_falls_back_to_inbox(self):
        assert TaskCategory.from_str("waiting") == TaskCategory.WAITING
        assert TaskCategory.from_str("NEXT") == TaskCategory.NEXT
        assert TaskCategory.from_str("archive") == TaskCategory.INBOX

    def test_parse_is_strict(self):
        assert TaskCategory.parse(" Someday ") == TaskCategory.SOMEDAY
        assert TaskCategory.parse(TaskCategory.NEXT) == TaskCategory.NEXT
        with pytest.raises(ValueError):
            TaskCategory.parse("archive")


class TestPriority:

    def test_rank(self):
        assert Priority.HIGH.rank == 3
        assert Priority.MEDIUM.rank == 2
        assert Priority.LOW.rank == 1

    def test_parse(self):
        assert Priority.parse("high") == Priority.HIGH
        assert Priority.parse(None) is None
        assert Priority.parse("") is None
        with pytest.raises(ValueError):
            Priority.parse("urgent")


class TestParseDueDate:

    def test_plain_date(self):
        assert parse_due_date("2024-03-01") == date(2024, 3, 1)

    def test_browser_iso_datetime(self):
        assert parse_due_date("2024-03-01T00:00:00.000Z") == date(2024, 3, 1)

    def test_empty_clears(self):
        assert parse_due_date(None) is None
        assert parse_due_date("") is None
        assert parse_due_date("   ") is None

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_due_date("next tuesday")


class TestTaskSerialization:

    def test_to_dict_uses_iso_strings(self):
        task = Task(
            id="t1",
            title="Write report",
            category=TaskCategory.NEXT,
            priority=Priority.HIGH,
            due_date=date(2024, 5, 2),
            created_at=datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
            order=4,
        )
        data = task.to_dict()
        assert data["category"] == "next"
        assert data["priority"] == "high"
        assert data["due_date"] == "2024-05-02"
        assert data["created_at"] == "2024-01-01T09:00:00+00:00"
        assert data["completed_at"] is None
        assert data["order"] == 4

    def test_from_dict_restores_dates(self):
        task = Task.from_dict({
            "id": "t1",
            "title": "Write report",
            "category": "next",
            "completed": True,
            "completed_at": "2024-01-02T10:00:00+00:00",
            "created_at": "2024-01-01T09:00:00+00:00",
            "due_date": "2024-05-02",
            "order": 3,
        })
        assert task.category == TaskCategory.NEXT
        assert task.completed_at == datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)
        assert task.due_date == date(2024, 5, 2)
        assert task.order == 3

    def test_from_dict_accepts_front_end_records(self):
        """Records saved by the browser use camelCase and may lack "order"."""
        task = Task.from_dict({
            "id": "1700000000000",
            "title": "Legacy",
            "category": "waiting",
            "completed": False,
            "createdAt": "2023-11-14T22:13:20.000Z",
            "dueDate": "2023-12-01T00:00:00.000Z",
            "priority": "low",
        })
        assert task.order == 0
        assert task.created_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert task.due_date == date(2023, 12, 1)
        assert task.priority == Priority.LOW

    def test_naive_timestamps_are_utc(self):
        task = Task.from_dict({"id": "x", "title": "t", "created_at": "2024-01-01T09:00:00"})
        assert task.created_at.tzinfo == timezone.utc

    def test_completed_at_only_when_completed(self):
        open_task = Task.from_dict({
            "id": "a", "title": "t", "completed": False,
            "created_at": "2024-01-01T09:00:00+00:00",
            "completed_at": "2024-01-02T09:00:00+00:00",
        })
        assert open_task.completed_at is None

        done_task = Task.from_dict({
            "id": "b", "title": "t", "completed": True,
            "created_at": "2024-01-01T09:00:00+00:00",
        })
        assert done_task.completed_at is not None

    def test_unknown_priority_loads_as_none(self):
        task = Task.from_dict({"id": "x", "title": "t", "priority": "critical"})
        assert task.priority is None


def test_edit_data_prefill():
    task = Task(id="t1", title="A", description="", category=TaskCategory.SCHEDULED,
                due_date=date(2024, 2, 29))
    data = EditTaskData.from_task(task)
    assert data.id == "t1"
    assert data.category == TaskCategory.SCHEDULED
    assert data.priority == Priority.MEDIUM  # modal default
    assert data.due_date == "2024-02-29"
