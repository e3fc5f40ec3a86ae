"""Tests for category projections and counts (projection.py)."""
from datetime import datetime, timedelta, timezone

from pkg.gtd.projection import (
    SortMode,
    project,
    priority_rank,
    category_counts,
    category_stats,
)
from pkg.gtd.schema import Task, TaskCategory, Priority

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _task(task_id, category=TaskCategory.INBOX, priority=None, minutes=0, order=0, completed=False):
    return Task(
        id=task_id,
        title=task_id,
        category=category,
        priority=priority,
        created_at=T0 + timedelta(minutes=minutes),
        order=order,
        completed=completed,
    )


def _ids(tasks):
    return [t.id for t in tasks]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Priority view
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestPriorityView:

    def test_high_before_low(self):
        tasks = [_task("B", priority=Priority.LOW), _task("A", priority=Priority.HIGH)]
        assert _ids(project(tasks, TaskCategory.INBOX)) == ["A", "B"]

    def test_no_priority_sorts_last(self):
        tasks = [
            _task("none"),
            _task("low", priority=Priority.LOW),
            _task("medium", priority=Priority.MEDIUM),
        ]
        assert _ids(project(tasks, TaskCategory.INBOX)) == ["medium", "low", "none"]

    def test_newest_first_within_priority(self):
        tasks = [
            _task("old", priority=Priority.MEDIUM, minutes=0),
            _task("new", priority=Priority.MEDIUM, minutes=5),
        ]
        assert _ids(project(tasks, TaskCategory.INBOX)) == ["new", "old"]

    def test_order_breaks_remaining_ties(self):
        tasks = [
            _task("second", priority=Priority.HIGH, order=2),
            _task("first", priority=Priority.HIGH, order=1),
        ]
        assert _ids(project(tasks, TaskCategory.INBOX)) == ["first", "second"]

    def test_filters_by_category(self):
        tasks = [_task("a"), _task("b", category=TaskCategory.NEXT), _task("c")]
        assert set(_ids(project(tasks, TaskCategory.INBOX))) == {"a", "c"}
        assert _ids(project(tasks, TaskCategory.WAITING)) == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Manual view
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestManualView:

    def test_order_ascending(self):
        tasks = [
            _task("c", order=2, priority=Priority.HIGH),
            _task("a", order=0, priority=Priority.LOW),
            _task("b", order=1),
        ]
        assert _ids(project(tasks, TaskCategory.INBOX, SortMode.MANUAL)) == ["a", "b", "c"]

    def test_equal_order_newest_first(self):
        tasks = [_task("old", order=0, minutes=0), _task("new", order=0, minutes=1)]
        assert _ids(project(tasks, TaskCategory.INBOX, SortMode.MANUAL)) == ["new", "old"]


def test_project_does_not_mutate_input():
    tasks = [_task("b", priority=Priority.LOW), _task("a", priority=Priority.HIGH)]
    project(tasks, TaskCategory.INBOX)
    assert _ids(tasks) == ["b", "a"]


def test_sort_mode_from_str():
    assert SortMode.from_str("manual") == SortMode.MANUAL
    assert SortMode.from_str("MANUAL") == SortMode.MANUAL
    assert SortMode.from_str("alphabetical") == SortMode.PRIORITY


def test_priority_rank():
    assert priority_rank(_task("x", priority=Priority.HIGH)) == 3
    assert priority_rank(_task("x")) == 0


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Counts and stats
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_category_counts_has_every_category():
    counts = category_counts([
        _task("a"),
        _task("b", completed=True),
        _task("c", category=TaskCategory.SCHEDULED),
    ])
    assert set(counts) == set(TaskCategory)
    assert counts[TaskCategory.INBOX] == 2  # completed tasks still count
    assert counts[TaskCategory.SCHEDULED] == 1
    assert counts[TaskCategory.SOMEDAY] == 0


def test_category_counts_sum_to_total():
    tasks = [_task(str(i), category=list(TaskCategory)[i % 5]) for i in range(12)]
    assert sum(category_counts(tasks).values()) == 12


def test_category_stats():
    stats = category_stats([
        _task("a", category=TaskCategory.NEXT),
        _task("b", category=TaskCategory.NEXT, completed=True),
        _task("c", category=TaskCategory.INBOX),
    ])
    assert stats == [
        {"category": "inbox", "total": 1, "completed": 0, "pending": 1},
        {"category": "next", "total": 2, "completed": 1, "pending": 1},
    ]
