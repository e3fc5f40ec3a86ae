"""
Drag-and-drop protocol for the task list and the category sidebar.

A drag session moves through:
  Idle → Dragging(task, source category) → Hovering(target) → Idle

The drag source writes {taskId, sourceCategory} into a DataTransfer. Drop
targets decode it into one of three intents:
  Reorder    dropped on a task of the list it was picked up from
  CrossMove  dropped on another category's list or on a sidebar button
  Malformed  anything that does not decode; logged, never raised

Drop targets never touch the store themselves; they call the callbacks
they were wired with (on_reorder / on_move / on_task_drop). A move callback
returns the moved task, or None when the id is unknown (reported as a no-op).
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .schema import Task, TaskCategory

logger = logging.getLogger(__name__)

MIME_JSON = "application/json"
MIME_HTML = "text/html"

CATEGORY_LABELS: Dict[TaskCategory, str] = {
    TaskCategory.INBOX: "Inbox",
    TaskCategory.NEXT: "Next",
    TaskCategory.WAITING: "Waiting",
    TaskCategory.SCHEDULED: "Scheduled",
    TaskCategory.SOMEDAY: "Someday",
}

CATEGORY_ICONS: Dict[TaskCategory, str] = {
    TaskCategory.INBOX: "📥",
    TaskCategory.NEXT: "⏭️",
    TaskCategory.WAITING: "⏳",
    TaskCategory.SCHEDULED: "📅",
    TaskCategory.SOMEDAY: "💭",
}


# ═══════════════════════════════════════════════════════════════
# Transfer payload
# ═══════════════════════════════════════════════════════════════

class DataTransfer:
    """Typed string slots carried from drag source to drop target."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self.effect_allowed = "uninitialized"
        self.drop_effect = "none"

    def set_data(self, mime: str, value: str) -> None:
        self._data[mime] = str(value)

    def get_data(self, mime: str) -> str:
        """Empty string for unset types, like the browser API."""
        return self._data.get(mime, "")


@dataclass(frozen=True)
class Reorder:
    task_id: str
    source_category: TaskCategory


@dataclass(frozen=True)
class CrossMove:
    task_id: str
    source_category: Optional[TaskCategory] = None


@dataclass(frozen=True)
class Malformed:
    reason: str


DropIntent = Union[Reorder, CrossMove, Malformed]


def encode_payload(task_id: str, source_category: TaskCategory) -> str:
    return json.dumps({"taskId": task_id, "sourceCategory": source_category.value})


def decode_payload(raw: Optional[str], target_category: Optional[TaskCategory] = None) -> DropIntent:
    """
    Decode a transfer payload against a drop target.

    With a target category (a task list), a payload from the same category is
    a Reorder and anything else a CrossMove. Without one (a sidebar button)
    every valid payload is a CrossMove. Never raises.
    """
    if not raw:
        return Malformed("empty payload")
    try:
        data = json.loads(raw)
    except ValueError as e:
        return Malformed(f"payload is not JSON: {e}")
    if not isinstance(data, dict):
        return Malformed("payload is not an object")

    task_id = data.get("taskId")
    if not isinstance(task_id, str) or not task_id.strip():
        return Malformed("payload has no taskId")

    source = None
    if data.get("sourceCategory") is not None:
        try:
            source = TaskCategory.parse(data["sourceCategory"])
        except ValueError:
            source = None  # Unknown bucket: treat as foreign

    if target_category is not None and source == target_category:
        return Reorder(task_id=task_id, source_category=source)
    return CrossMove(task_id=task_id, source_category=source)


# ═══════════════════════════════════════════════════════════════
# Session state machine
# ═══════════════════════════════════════════════════════════════

class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"


# A hover/drop target is either a task id (list item) or a category (sidebar button)
DropTarget = Union[str, TaskCategory]


class DragSession:
    """
    Interaction state shared by the list and the sidebar.

    Holds the "dragging" marker (the source item) and the "drag-over" marker
    (the hovered target). drag_end() always returns to IDLE, even when no
    drop handler ran, and is safe to call repeatedly.
    """

    def __init__(self):
        self.state = DragState.IDLE
        self.source_task_id: Optional[str] = None
        self.source_category: Optional[TaskCategory] = None
        self.hover_target: Optional[DropTarget] = None
        self.data_transfer: Optional[DataTransfer] = None

    def drag_start(self, task_id: str, category: TaskCategory) -> DataTransfer:
        dt = DataTransfer()
        dt.effect_allowed = "move"
        dt.set_data(MIME_HTML, task_id)
        dt.set_data(MIME_JSON, encode_payload(task_id, category))

        self.state = DragState.DRAGGING
        self.source_task_id = task_id
        self.source_category = category
        self.hover_target = None
        self.data_transfer = dt
        return dt

    def drag_over(self, data_transfer: Optional[DataTransfer]) -> None:
        if data_transfer is not None:
            data_transfer.drop_effect = "move"

    def drag_enter(self, target: DropTarget) -> bool:
        """Mark target as drag-over. The drag source itself is never marked."""
        if self.source_task_id is not None and target == self.source_task_id:
            return False
        self.hover_target = target
        self.state = DragState.HOVERING
        return True

    def drag_leave(self, target: Optional[DropTarget] = None) -> None:
        if target is not None and target != self.hover_target:
            return
        self.hover_target = None
        self.state = DragState.DRAGGING if self.source_task_id is not None else DragState.IDLE

    def drag_end(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.state = DragState.IDLE
        self.source_task_id = None
        self.source_category = None
        self.hover_target = None
        self.data_transfer = None

    def is_dragging(self, task_id: str) -> bool:
        return self.state != DragState.IDLE and self.source_task_id == task_id

    def is_drag_over(self, target: DropTarget) -> bool:
        return self.hover_target is not None and self.hover_target == target


# ═══════════════════════════════════════════════════════════════
# Drop outcomes
# ═══════════════════════════════════════════════════════════════

class DropKind(Enum):
    REORDER = "reorder"
    MOVE = "move"
    NOOP = "noop"
    MALFORMED = "malformed"
    INERT = "inert"      # sidebar without a drop handler
    FAILED = "failed"    # the wired callback raised


@dataclass(frozen=True)
class DropResult:
    kind: DropKind
    task_id: Optional[str] = None
    category: Optional[TaskCategory] = None
    task_ids: Tuple[str, ...] = ()
    reason: str = ""


def _read_intent(data_transfer: Optional[DataTransfer], target_category: Optional[TaskCategory]) -> DropIntent:
    if data_transfer is None:
        return Malformed("no data transfer")
    return decode_payload(data_transfer.get_data(MIME_JSON), target_category)


def _invoke(callback: Callable, *args) -> Tuple[Any, Optional[str]]:
    """Run a wired callback; return its result and the error text if it raised."""
    try:
        return callback(*args), None
    except Exception as e:
        logger.exception(f"Drop callback {getattr(callback, '__name__', callback)} failed")
        return None, str(e)


def _apply_move(callback: Callable, task_id: str, category: TaskCategory) -> DropResult:
    """Run a move callback. A None result means the task was not found."""
    moved, error = _invoke(callback, task_id, category)
    if error:
        return DropResult(DropKind.FAILED, task_id=task_id, category=category, reason=error)
    if moved is None:
        logger.warning(f"Move ignored: unknown task {task_id}")
        return DropResult(DropKind.NOOP, task_id=task_id, category=category, reason="unknown task")
    return DropResult(DropKind.MOVE, task_id=task_id, category=category)


# ═══════════════════════════════════════════════════════════════
# Drop targets
# ═══════════════════════════════════════════════════════════════

class DragAndDropTaskList:
    """
    The displayed list of one category.

    `tasks` is the list exactly as shown; a reorder is computed against it.
    """

    def __init__(
        self,
        category: TaskCategory,
        tasks: List[Task],
        on_reorder: Callable[[TaskCategory, List[str]], Any],
        on_move: Callable[[str, TaskCategory], Optional[Task]],
        session: Optional[DragSession] = None,
    ):
        self.category = category
        self.tasks = list(tasks)
        self.on_reorder = on_reorder
        self.on_move = on_move
        self.session = session or DragSession()

    @property
    def task_ids(self) -> List[str]:
        return [t.id for t in self.tasks]

    def drag_start(self, task_id: str) -> DataTransfer:
        return self.session.drag_start(task_id, self.category)

    def drag_over(self, data_transfer: Optional[DataTransfer]) -> None:
        self.session.drag_over(data_transfer)

    def drag_enter(self, task_id: str) -> bool:
        return self.session.drag_enter(task_id)

    def drag_leave(self, task_id: Optional[str] = None) -> None:
        self.session.drag_leave(task_id)

    def drag_end(self) -> None:
        self.session.drag_end()

    def drop(self, drop_task_id: str, data_transfer: Optional[DataTransfer]) -> DropResult:
        """Handle a drop onto one of the list's items. The session always ends idle."""
        try:
            return self._drop_on_task(drop_task_id, data_transfer)
        finally:
            self.session.reset()

    def drop_on_empty(self, data_transfer: Optional[DataTransfer]) -> DropResult:
        """Drop onto the list area itself (e.g. the empty-state hint)."""
        try:
            intent = _read_intent(data_transfer, self.category)
            if isinstance(intent, Malformed):
                logger.error(f"Error processing drop: {intent.reason}")
                return DropResult(DropKind.MALFORMED, reason=intent.reason)
            if isinstance(intent, Reorder):
                return DropResult(DropKind.NOOP, task_id=intent.task_id, reason="already in this category")
            return self._move(intent.task_id)
        finally:
            self.session.reset()

    def _drop_on_task(self, drop_task_id: str, data_transfer: Optional[DataTransfer]) -> DropResult:
        intent = _read_intent(data_transfer, self.category)
        if isinstance(intent, Malformed):
            logger.error(f"Error processing drop: {intent.reason}")
            return DropResult(DropKind.MALFORMED, reason=intent.reason)

        if intent.task_id == drop_task_id:
            return DropResult(DropKind.NOOP, task_id=intent.task_id, reason="dropped onto itself")

        if isinstance(intent, CrossMove):
            return self._move(intent.task_id)

        ids = self.task_ids
        if intent.task_id not in ids or drop_task_id not in ids:
            logger.warning(f"Reorder ignored: {intent.task_id} or {drop_task_id} not in {self.category.value}")
            return DropResult(DropKind.NOOP, task_id=intent.task_id, reason="task not in list")

        drop_index = ids.index(drop_task_id)
        ids.remove(intent.task_id)
        ids.insert(drop_index, intent.task_id)

        _, error = _invoke(self.on_reorder, self.category, ids)
        if error:
            return DropResult(DropKind.FAILED, task_id=intent.task_id, category=self.category, reason=error)
        return DropResult(DropKind.REORDER, task_id=intent.task_id, category=self.category, task_ids=tuple(ids))

    def _move(self, task_id: str) -> DropResult:
        return _apply_move(self.on_move, task_id, self.category)


@dataclass(frozen=True)
class SidebarItem:
    """One navigation button as rendered."""
    category: TaskCategory
    label: str
    icon: str
    count: int
    active: bool
    drag_over: bool

    @property
    def aria_label(self) -> str:
        return f"{self.label} ({self.count} tasks)"


class Sidebar:
    """Category navigation. Each button is also a drop target that moves a task."""

    def __init__(
        self,
        active_category: TaskCategory,
        on_category_change: Callable[[TaskCategory], None],
        task_counts: Dict[TaskCategory, int],
        on_task_drop: Optional[Callable[[str, TaskCategory], Optional[Task]]] = None,
        session: Optional[DragSession] = None,
    ):
        self.active_category = active_category
        self.on_category_change = on_category_change
        self.task_counts = task_counts
        self.on_task_drop = on_task_drop
        self.session = session or DragSession()

    def items(self) -> List[SidebarItem]:
        return [
            SidebarItem(
                category=category,
                label=label,
                icon=CATEGORY_ICONS[category],
                count=self.task_counts.get(category, 0),
                active=category == self.active_category,
                drag_over=self.session.is_drag_over(category),
            )
            for category, label in CATEGORY_LABELS.items()
        ]

    def select(self, category: TaskCategory) -> None:
        self.on_category_change(category)

    def drag_over(self, data_transfer: Optional[DataTransfer]) -> None:
        self.session.drag_over(data_transfer)

    def drag_enter(self, category: TaskCategory) -> bool:
        return self.session.drag_enter(category)

    def drag_leave(self, category: TaskCategory) -> None:
        self.session.drag_leave(category)

    def drop(self, category: TaskCategory, data_transfer: Optional[DataTransfer]) -> DropResult:
        """Move the dragged task into `category`. Inert when no handler is wired."""
        try:
            intent = _read_intent(data_transfer, None)
            if isinstance(intent, Malformed):
                logger.error(f"Error processing drop on sidebar: {intent.reason}")
                return DropResult(DropKind.MALFORMED, reason=intent.reason)
            if self.on_task_drop is None:
                return DropResult(DropKind.INERT, task_id=intent.task_id, category=category)
            return _apply_move(self.on_task_drop, intent.task_id, category)
        finally:
            self.session.reset()
