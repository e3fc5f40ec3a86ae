"""
Client-side task store.

Owns the canonical task collection and writes the whole collection through
to storage after every mutation (no batching, no debounce). Callers only
ever receive copies; every change goes through the operations below so
persistence and change events stay consistent.
"""
import json
import logging
import time
import uuid
from dataclasses import fields, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .events import (
    TaskEventBus,
    TASK_CREATED,
    TASK_UPDATED,
    TASK_DELETED,
    TASK_MOVED,
    TASKS_REORDERED,
    PERSIST_FAILED,
    CHANGED,
)
from .projection import SortMode, project, category_counts
from .schema import (
    Task,
    TaskCategory,
    Priority,
    TaskFormData,
    EditTaskData,
    parse_due_date,
    parse_timestamp,
    utc_now,
)
from .storage import StorageError

logger = logging.getLogger(__name__)

STORAGE_KEY = "gtd-tasks"
BACKUP_SUFFIX = ".bak"

_TASK_FIELDS = {f.name for f in fields(Task)}
_IMMUTABLE_FIELDS = {"id", "created_at"}
_MAX_ID_ATTEMPTS = 10


def make_task_id() -> str:
    """Generate a sortable unique task ID (ms-precision timestamp + random hex)."""
    ts = int(time.time() * 1000)
    rand = uuid.uuid4().hex[:8]
    return f"task-{ts}-{rand}"


class TaskStore:
    """Single source of truth for the task collection."""

    def __init__(
        self,
        storage,
        key: str = STORAGE_KEY,
        events: Optional[TaskEventBus] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """Initialize the store and load the collection once from storage."""
        self.storage = storage
        self.key = key
        self.events = events or TaskEventBus()
        self._clock = clock or utc_now
        self._make_id = id_factory or make_task_id
        self._tasks: List[Task] = []
        self._next_order = 0
        self.last_persist_error: Optional[Exception] = None
        self.backup_key: Optional[str] = None
        self._writes_blocked = False
        self._load()

    # ── Loading / persistence ────────────────────────────────────────────

    def _load(self) -> None:
        try:
            raw = self.storage.get_item(self.key)
        except (StorageError, OSError) as e:
            logger.error(f"Cannot load tasks from storage: {e}")
            return
        if raw is None:
            return  # First run

        try:
            records = json.loads(raw)
        except ValueError as e:
            logger.error(f"Stored value under {self.key!r} is unreadable, starting empty: {e}")
            self._backup(raw)
            return
        if not isinstance(records, list):
            logger.error(f"Stored value under {self.key!r} is unreadable, starting empty: not a list")
            self._backup(raw)
            return

        seen = set()
        dropped = 0
        for index, record in enumerate(records):
            try:
                task = Task.from_dict(record)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.warning(f"Skipping unreadable task record #{index} under {self.key!r}: {e!r}")
                dropped += 1
                continue
            if task.id in seen:
                logger.warning(f"Dropping duplicate task id {task.id} from storage")
                dropped += 1
                continue
            seen.add(task.id)
            self._tasks.append(task)
        if dropped:
            self._backup(raw)
        self._next_order = max((t.order for t in self._tasks), default=-1) + 1
        logger.debug(f"Loaded {len(self._tasks)} tasks from {self.key!r}")

    def _backup(self, raw: str) -> None:
        """Copy the stored value aside before the next persist overwrites it."""
        backup_key = f"{self.key}{BACKUP_SUFFIX}"
        try:
            self.storage.set_item(backup_key, raw)
        except (StorageError, OSError) as e:
            self._writes_blocked = True
            logger.error(f"Cannot back up {self.key!r}, refusing to overwrite it: {e}")
            return
        self.backup_key = backup_key
        logger.warning(f"Original value of {self.key!r} saved under {backup_key!r}")

    def _persist(self) -> bool:
        """Write the whole collection. Failures are reported, never raised."""
        payload = json.dumps([t.to_dict() for t in self._tasks])
        try:
            if self._writes_blocked:
                raise StorageError(f"{self.key!r} holds data that could not be backed up")
            self.storage.set_item(self.key, payload)
        except (StorageError, OSError) as e:
            self.last_persist_error = e
            logger.error(f"Failed to persist {len(self._tasks)} tasks: {e}")
            self.events.emit(PERSIST_FAILED, error=e)
            return False
        self.last_persist_error = None
        return True

    def _commit(self, event_type: str, **kwargs) -> None:
        self._persist()
        self.events.emit(event_type, **kwargs)
        self.events.emit(CHANGED)

    # ── Helpers ──────────────────────────────────────────────────────────

    def _find(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def _new_id(self) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            task_id = self._make_id()
            if self._find(task_id) is None:
                return task_id
        raise RuntimeError("Could not generate a unique task id")

    def _allocate_order(self) -> int:
        order = self._next_order
        self._next_order += 1
        return order

    def _sync_completion(self, task: Task) -> None:
        if not task.completed:
            task.completed_at = None
        elif task.completed_at is None:
            task.completed_at = self._clock()

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        if name == "category":
            return TaskCategory.parse(value)
        if name == "priority":
            return Priority.parse(value)
        if name == "due_date":
            return parse_due_date(value)
        if name == "completed_at":
            return parse_timestamp(value)
        if name == "completed":
            return bool(value)
        if name == "order":
            return int(value)
        if name in ("title", "description"):
            return "" if value is None else str(value)
        return value

    # ── Mutations ────────────────────────────────────────────────────────

    def create(self, form: TaskFormData) -> Optional[Task]:
        """Create a task from form input. Blank titles are ignored."""
        title = (form.title or "").strip()
        if not title:
            logger.debug("Ignoring task with empty title")
            return None

        task = Task(
            id=self._new_id(),
            title=title,
            description=form.description or "",
            category=TaskCategory.parse(form.category),
            priority=Priority.parse(form.priority),
            due_date=parse_due_date(form.due_date),
            completed=False,
            order=self._allocate_order(),
            created_at=self._clock(),
        )
        self._tasks.append(task)
        self._commit(TASK_CREATED, task_id=task.id)
        return replace(task)

    def update(self, task_id: str, **changes) -> Optional[Task]:
        """Shallow-merge fields into a task. Returns None if the id is unknown."""
        unknown = set(changes) - _TASK_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {sorted(unknown)}")
        frozen = set(changes) & _IMMUTABLE_FIELDS
        if frozen:
            raise ValueError(f"Immutable task fields: {sorted(frozen)}")

        task = self._find(task_id)
        if not task:
            return None

        coerced = {name: self._coerce(name, value) for name, value in changes.items()}
        if "title" in coerced:
            coerced["title"] = coerced["title"].strip()
            if not coerced["title"]:
                logger.debug(f"Ignoring update of {task_id}: empty title")
                return None

        for name, value in coerced.items():
            setattr(task, name, value)
        self._sync_completion(task)
        self._commit(TASK_UPDATED, task_id=task_id)
        return replace(task)

    def edit(self, data: EditTaskData) -> Optional[Task]:
        """Apply the edit modal's fixed field set."""
        task = self._find(data.id)
        if not task:
            return None
        title = (data.title or "").strip()
        if not title:
            logger.debug(f"Ignoring edit of {data.id}: empty title")
            return None

        category = TaskCategory.parse(data.category)
        priority = Priority.parse(data.priority)
        due_date = parse_due_date(data.due_date)

        task.title = title
        task.description = data.description or ""
        task.category = category
        task.priority = priority
        task.due_date = due_date
        self._commit(TASK_UPDATED, task_id=task.id)
        return replace(task)

    def toggle_complete(self, task_id: str) -> Optional[Task]:
        """Flip completion; completed_at follows."""
        task = self._find(task_id)
        if not task:
            return None
        task.completed = not task.completed
        task.completed_at = self._clock() if task.completed else None
        self._commit(TASK_UPDATED, task_id=task_id)
        return replace(task)

    def delete(self, task_id: str) -> Optional[Task]:
        """Remove a task permanently. Returns the removed task."""
        task = self._find(task_id)
        if not task:
            return None
        self._tasks.remove(task)
        self._commit(TASK_DELETED, task_id=task_id)
        return task

    def move(self, task_id: str, category: TaskCategory) -> Optional[Task]:
        """Change a task's category. Order values are left alone."""
        target = TaskCategory.parse(category)
        task = self._find(task_id)
        if not task:
            return None
        source = task.category
        task.category = target
        self._commit(TASK_MOVED, task_id=task_id, source=source, target=target)
        return replace(task)

    def reorder(self, category: TaskCategory, ordered_ids: List[str]) -> List[Task]:
        """
        Rewrite `order` to each id's index in `ordered_ids`.

        Only tasks currently in `category` are touched. Tasks of the category
        missing from `ordered_ids` keep their old order, so callers should pass
        the complete id list of the category.
        """
        category = TaskCategory.parse(category)
        positions: Dict[str, int] = {}
        for index, task_id in enumerate(ordered_ids):
            positions.setdefault(task_id, index)

        updated = []
        for task in self._tasks:
            if task.category == category and task.id in positions:
                task.order = positions[task.id]
                updated.append(task)
        self._commit(TASKS_REORDERED, category=category, task_ids=list(ordered_ids))
        return [replace(t) for t in updated]

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def tasks(self) -> List[Task]:
        return [replace(t) for t in self._tasks]

    def get(self, task_id: str) -> Optional[Task]:
        task = self._find(task_id)
        return replace(task) if task else None

    def by_category(self, category: TaskCategory, mode: SortMode = SortMode.PRIORITY) -> List[Task]:
        """Tasks of one category in display order."""
        return [replace(t) for t in project(self._tasks, TaskCategory.parse(category), mode)]

    def completed_tasks(self) -> List[Task]:
        return [replace(t) for t in self._tasks if t.completed]

    def active_tasks(self) -> List[Task]:
        return [replace(t) for t in self._tasks if not t.completed]

    def counts(self) -> Dict[TaskCategory, int]:
        return category_counts(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return any(t.id == task_id for t in self._tasks)
