"""
GTD task schema.

Workflow buckets:
  Inbox → Next → Waiting → Scheduled → Someday

Buckets are not a pipeline: a task can be moved between any two of them.
Completion is orthogonal to the bucket a task lives in.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional, Dict, Any


class TaskCategory(Enum):
    """The five fixed GTD buckets."""
    INBOX = "inbox"          # Captured, not yet processed
    NEXT = "next"            # Next physical actions
    WAITING = "waiting"      # Delegated / waiting on someone
    SCHEDULED = "scheduled"  # Bound to a date
    SOMEDAY = "someday"      # Maybe later

    @classmethod
    def from_str(cls, value: str) -> "TaskCategory":
        """Lenient lookup for stored values. Unknown strings land in the inbox."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.INBOX

    @classmethod
    def parse(cls, value: Any) -> "TaskCategory":
        """Strict lookup for user input. Raises ValueError on unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid category: {value}") from None

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Priority(Enum):
    """Task priority. Absent priority ranks below LOW."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["Priority"]:
        """Strict lookup; None and "" mean no priority."""
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid priority: {value}") from None


_PRIORITY_RANK = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_due_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a due date from form input.

    Accepts "YYYY-MM-DD" or a full ISO-8601 datetime (only the date part is
    kept). Empty input clears the date. Raises ValueError on anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    # Browsers send "2024-03-01T00:00:00.000Z"; fromisoformat wants +00:00
    return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    """First present key wins (snake_case first, then the front-end's camelCase)."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


@dataclass
class Task:
    """A single GTD task."""

    # Identity
    id: str
    title: str

    # Content
    description: str = ""
    category: TaskCategory = TaskCategory.INBOX
    priority: Optional[Priority] = None
    due_date: Optional[date] = None

    # Completion (completed_at is set iff completed)
    completed: bool = False
    completed_at: Optional[datetime] = None

    # Position within the category; only comparable inside one category
    order: int = 0

    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dict with ISO-8601 dates."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "completed": self.completed,
            "priority": self.priority.value if self.priority else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """
        Deserialize from a stored record.

        Tolerates records written by the browser front-end (camelCase keys,
        no "order" field) and unknown priority strings.
        """
        priority = None
        if data.get("priority"):
            try:
                priority = Priority(data["priority"])
            except ValueError:
                priority = None

        due_raw = _pick(data, "due_date", "dueDate")
        created_at = parse_timestamp(_pick(data, "created_at", "createdAt")) or utc_now()
        completed = bool(data.get("completed", False))
        completed_at = None
        if completed:
            # Old records may have lost the timestamp; keep completed_at set iff completed
            completed_at = parse_timestamp(_pick(data, "completed_at", "completedAt")) or created_at

        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            description=data.get("description") or "",
            category=TaskCategory.from_str(data.get("category", "inbox")),
            priority=priority,
            due_date=parse_due_date(due_raw) if due_raw else None,
            completed=completed,
            completed_at=completed_at,
            order=int(data.get("order") or 0),
            created_at=created_at,
        )


@dataclass
class TaskFormData:
    """Input of the "add task" form."""
    title: str
    description: str = ""
    category: TaskCategory = TaskCategory.INBOX
    priority: Optional[Priority] = Priority.MEDIUM
    due_date: Optional[str] = None


@dataclass
class EditTaskData:
    """Input of the "edit task" modal: the fixed editable field set."""
    id: str
    title: str
    description: str = ""
    category: TaskCategory = TaskCategory.INBOX
    priority: Optional[Priority] = Priority.MEDIUM
    due_date: Optional[str] = None

    @classmethod
    def from_task(cls, task: Task) -> "EditTaskData":
        """Prefill the modal from an existing task."""
        return cls(
            id=task.id,
            title=task.title,
            description=task.description or "",
            category=task.category,
            priority=task.priority or Priority.MEDIUM,
            due_date=task.due_date.isoformat() if task.due_date else None,
        )
