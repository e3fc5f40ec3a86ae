"""
Change notifications for the task store.

The store emits one event per applied mutation and a generic "changed"
event after every persist attempt. Views subscribe to "changed" to know
when to recompute projections and counts.
"""
import logging
from typing import Dict, Callable, List

logger = logging.getLogger(__name__)

TASK_CREATED = "task_created"
TASK_UPDATED = "task_updated"
TASK_DELETED = "task_deleted"
TASK_MOVED = "task_moved"
TASKS_REORDERED = "tasks_reordered"
PERSIST_FAILED = "persist_failed"
CHANGED = "changed"


class TaskEventBus:
    """Routes store events to subscribed callbacks."""

    def __init__(self):
        self.subscribers: Dict[str, List[Callable]] = {}  # event_type -> callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        if event_type not in self.subscribers:
            self.subscribers[event_type] = []
        self.subscribers[event_type].append(callback)

    def emit(self, event_type: str, **kwargs) -> None:
        """Emit an event to all subscribers. A failing callback never reaches the caller."""
        for callback in list(self.subscribers.get(event_type, [])):
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error(f"Error in {event_type} callback: {e}")
