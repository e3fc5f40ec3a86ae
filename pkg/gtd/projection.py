"""
Category projections: filtered, deterministically ordered views of the
task collection, plus the per-category counts shown in the sidebar.

All functions here are pure; they never mutate the tasks they are given.
"""
from enum import Enum
from typing import Dict, Iterable, List, Any

from .schema import Task, TaskCategory


class SortMode(Enum):
    """How a category list is ordered for display."""
    PRIORITY = "priority"  # priority desc, created_at desc, order asc
    MANUAL = "manual"      # order asc, created_at desc

    @classmethod
    def from_str(cls, value: str) -> "SortMode":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.PRIORITY


def priority_rank(task: Task) -> int:
    """high=3, medium=2, low=1, no priority=0."""
    return task.priority.rank if task.priority else 0


def priority_sort_key(task: Task):
    return (-priority_rank(task), -task.created_at.timestamp(), task.order)


def manual_sort_key(task: Task):
    return (task.order, -task.created_at.timestamp())


_SORT_KEYS = {
    SortMode.PRIORITY: priority_sort_key,
    SortMode.MANUAL: manual_sort_key,
}


def project(
    tasks: Iterable[Task],
    category: TaskCategory,
    mode: SortMode = SortMode.PRIORITY,
) -> List[Task]:
    """Tasks of one category in display order."""
    selected = [t for t in tasks if t.category == category]
    # Stable sort: full ties keep collection order
    selected.sort(key=_SORT_KEYS[mode])
    return selected


def category_counts(tasks: Iterable[Task]) -> Dict[TaskCategory, int]:
    """Number of tasks per category (completed ones included). All five keys present."""
    counts = {c: 0 for c in TaskCategory}
    for task in tasks:
        counts[task.category] += 1
    return counts


def category_stats(tasks: Iterable[Task]) -> List[Dict[str, Any]]:
    """Totals per category, same shape as the REST API's /api/stats rows."""
    stats = {c: {"category": c.value, "total": 0, "completed": 0, "pending": 0} for c in TaskCategory}
    for task in tasks:
        row = stats[task.category]
        row["total"] += 1
        if task.completed:
            row["completed"] += 1
        else:
            row["pending"] += 1
    return [stats[c] for c in sorted(TaskCategory, key=lambda c: c.value) if stats[c]["total"]]
