"""
GTD board: the application view model.

Wires one TaskStore to the category sidebar, the drag-and-drop list of the
active category and the edit modal. Views are rebuilt from the store on
every access, the way a UI re-renders after a state change.
"""
import logging
from typing import Dict, List, Optional

from .config import Config
from .dnd import DataTransfer, DragAndDropTaskList, DragSession, DropResult, Sidebar, CATEGORY_LABELS
from .events import CHANGED
from .projection import SortMode
from .schema import Task, TaskCategory, TaskFormData, EditTaskData
from .storage import LocalStorage
from .store import TaskStore

logger = logging.getLogger(__name__)


class GtdBoard:
    """Active category, edit state and drag session around a TaskStore."""

    def __init__(
        self,
        store: TaskStore,
        sort_mode: SortMode = SortMode.PRIORITY,
        active_category: TaskCategory = TaskCategory.INBOX,
    ):
        self.store = store
        self.sort_mode = sort_mode
        self.active_category = active_category
        self.session = DragSession()
        self.editing: Optional[Task] = None
        self.render_version = 0
        store.events.subscribe(CHANGED, self._on_store_changed)

    @classmethod
    def from_config(cls, cfg: Config) -> "GtdBoard":
        """Board over the persistent local store named in the config."""
        store = TaskStore(LocalStorage(cfg.storage_path), key=cfg.storage_key)
        return cls(store, sort_mode=SortMode.from_str(cfg.sort_mode))

    def _on_store_changed(self) -> None:
        self.render_version += 1

    # ── Navigation ───────────────────────────────────────────────────────

    def select_category(self, category: TaskCategory) -> None:
        self.active_category = TaskCategory.parse(category)

    def current_tasks(self) -> List[Task]:
        return self.store.by_category(self.active_category, self.sort_mode)

    def task_counts(self) -> Dict[TaskCategory, int]:
        return self.store.counts()

    def header(self) -> str:
        count = len(self.current_tasks())
        return f"{CATEGORY_LABELS[self.active_category]} · {count} task{'' if count == 1 else 's'}"

    # ── Views ────────────────────────────────────────────────────────────

    def task_list(self) -> DragAndDropTaskList:
        return DragAndDropTaskList(
            category=self.active_category,
            tasks=self.current_tasks(),
            on_reorder=self.store.reorder,
            on_move=self.store.move,
            session=self.session,
        )

    def sidebar(self) -> Sidebar:
        return Sidebar(
            active_category=self.active_category,
            on_category_change=self.select_category,
            task_counts=self.task_counts(),
            on_task_drop=self.store.move,
            session=self.session,
        )

    # ── Forms ────────────────────────────────────────────────────────────

    def add_task(self, form: TaskFormData) -> bool:
        """Submit the add form. Returns True when the form should clear."""
        return self.store.create(form) is not None

    def new_form(self) -> TaskFormData:
        """Blank add form, preset to the active category."""
        return TaskFormData(title="", category=self.active_category)

    def start_edit(self, task_id: str) -> Optional[EditTaskData]:
        task = self.store.get(task_id)
        if not task:
            return None
        self.editing = task
        return EditTaskData.from_task(task)

    def save_edit(self, data: EditTaskData) -> bool:
        """Apply the modal. The modal stays open when the title is blank."""
        if not (data.title or "").strip():
            return False
        self.store.edit(data)
        self.editing = None
        return True

    def cancel_edit(self) -> None:
        self.editing = None

    # ── Drag and drop ────────────────────────────────────────────────────

    def drag_start(self, task_id: str) -> DataTransfer:
        return self.task_list().drag_start(task_id)

    def drop_on_task(self, drop_task_id: str, data_transfer: Optional[DataTransfer]) -> DropResult:
        result = self.task_list().drop(drop_task_id, data_transfer)
        logger.debug(f"Drop on task {drop_task_id}: {result.kind.value}")
        return result

    def drop_on_list(self, data_transfer: Optional[DataTransfer]) -> DropResult:
        return self.task_list().drop_on_empty(data_transfer)

    def drop_on_sidebar(self, category: TaskCategory, data_transfer: Optional[DataTransfer]) -> DropResult:
        result = self.sidebar().drop(category, data_transfer)
        logger.debug(f"Drop on sidebar {category.value}: {result.kind.value}")
        return result

    def drag_end(self) -> None:
        self.session.drag_end()

    # ── Text rendering ───────────────────────────────────────────────────

    def summary(self) -> str:
        """Plain-text listing of the active category."""
        lines = [self.header()]
        tasks = self.current_tasks()
        if not tasks:
            lines.append("  (no tasks in this category)")
        for task in tasks:
            check = "x" if task.completed else " "
            line = f"  [{check}] {task.title}"
            if task.priority:
                line += f" ({task.priority.value})"
            if task.due_date:
                line += f" due {task.due_date.isoformat()}"
            lines.append(line)
        return "\n".join(lines)
