"""
Task table for the REST API (SQLite).

Plain CRUD over one table. Rows are returned as dicts in the API's wire
shape; database errors propagate to the caller (the server turns them into
500 responses).
"""
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone, date, timedelta
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .schema import TaskCategory

CATEGORIES = tuple(c.value for c in TaskCategory)
PRIORITIES = ("low", "medium", "high")


@contextmanager
def _connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """Open a connection with WAL mode. Closed on exit, after commit or rollback."""
    conn = sqlite3.connect(db_path)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        with conn:
            yield conn
    finally:
        conn.close()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskRepository:
    """SQLite-backed task table."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize repository and create tables if needed."""
        if db_path is None:
            db_path = str(Path.home() / ".local" / "share" / "gtd" / "gtd.db")
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        """Create table and indexes if they don't exist."""
        categories = ", ".join(f"'{c}'" for c in CATEGORIES)
        priorities = ", ".join(f"'{p}'" for p in PRIORITIES)
        with _connect(self.db_path) as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT,
                    category TEXT NOT NULL CHECK (category IN ({categories})),
                    completed INTEGER NOT NULL DEFAULT 0,
                    priority TEXT CHECK (priority IN ({priorities})),
                    due_date TEXT,
                    order_index INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    completed_at TEXT,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_category ON tasks(category)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_completed ON tasks(completed)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_order ON tasks(category, order_index)")
            conn.commit()

    def ping(self) -> bool:
        with _connect(self.db_path) as conn:
            conn.execute("SELECT 1").fetchone()
        return True

    def list(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """All tasks, or the tasks of one category, in list order."""
        with _connect(self.db_path) as conn:
            if category:
                rows = conn.execute(
                    "SELECT * FROM tasks WHERE category = ? ORDER BY order_index, created_at DESC",
                    (category,),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM tasks ORDER BY category, order_index, created_at DESC"
                ).fetchall()
        return [self._row_to_dict(r) for r in rows]

    def get(self, task_id: int) -> Optional[Dict[str, Any]]:
        with _connect(self.db_path) as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return self._row_to_dict(row) if row else None

    def create(
        self,
        title: str,
        category: str,
        description: str = "",
        priority: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Insert a task at the end of its category."""
        now = _now()
        with _connect(self.db_path) as conn:
            cursor = conn.execute("""
                INSERT INTO tasks (title, description, category, priority, due_date,
                                   order_index, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?,
                        (SELECT COALESCE(MAX(order_index), -1) + 1 FROM tasks WHERE category = ?),
                        ?, ?)
            """, (title, description, category, priority, due_date, category, now, now))
            task_id = cursor.lastrowid
            conn.commit()
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return self._row_to_dict(row)

    def update(
        self,
        task_id: int,
        title: str,
        category: str,
        description: str = "",
        priority: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Full update of the editable fields. None if the id is unknown."""
        with _connect(self.db_path) as conn:
            cursor = conn.execute("""
                UPDATE tasks
                SET title = ?, description = ?, category = ?, priority = ?, due_date = ?, updated_at = ?
                WHERE id = ?
            """, (title, description, category, priority, due_date, _now(), task_id))
            conn.commit()
            if cursor.rowcount == 0:
                return None
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return self._row_to_dict(row)

    def toggle(self, task_id: int) -> Optional[Dict[str, Any]]:
        """Flip completion; completed_at is set on completion and cleared on reopen."""
        now = _now()
        with _connect(self.db_path) as conn:
            cursor = conn.execute("""
                UPDATE tasks
                SET completed = CASE WHEN completed THEN 0 ELSE 1 END,
                    completed_at = CASE WHEN completed THEN NULL ELSE ? END,
                    updated_at = ?
                WHERE id = ?
            """, (now, now, task_id))
            conn.commit()
            if cursor.rowcount == 0:
                return None
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return self._row_to_dict(row)

    def delete(self, task_id: int) -> bool:
        with _connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
            return cursor.rowcount > 0

    def reorder(self, category: str, task_ids: List[int]) -> int:
        """Set order_index to each id's position, scoped to the category. Returns rows touched."""
        now = _now()
        touched = 0
        with _connect(self.db_path) as conn:
            for index, task_id in enumerate(task_ids):
                cursor = conn.execute(
                    "UPDATE tasks SET order_index = ?, updated_at = ? WHERE id = ? AND category = ?",
                    (index, now, task_id, category),
                )
                touched += cursor.rowcount
            conn.commit()
        return touched

    def stats(self) -> List[Dict[str, Any]]:
        """Per-category totals, completed and pending counts."""
        with _connect(self.db_path) as conn:
            rows = conn.execute("""
                SELECT category,
                       COUNT(*) AS total,
                       SUM(CASE WHEN completed THEN 1 ELSE 0 END) AS completed,
                       SUM(CASE WHEN completed THEN 0 ELSE 1 END) AS pending
                FROM tasks
                GROUP BY category
                ORDER BY category
            """).fetchall()
        return [dict(r) for r in rows]

    def count(self) -> int:
        with _connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM tasks").fetchone()[0]

    def seed_sample_data(self) -> int:
        """Insert one example task per category when the table is empty."""
        if self.count():
            return 0
        today = date.today()
        samples = [
            ("Go through the mail inbox", "Sort and answer all e-mails", "inbox", "medium", today + timedelta(days=1)),
            ("Plan Q1 projects", "Define strategy and goals for the first quarter", "next", "high", today + timedelta(days=7)),
            ("Wait for customer reply", "Quote for project X has been sent", "waiting", "low", None),
            ("Plan annual leave", "Holiday planning for next year", "scheduled", "medium", today + timedelta(days=90)),
            ("Learn a new programming language", "Rust for future projects", "someday", "low", None),
        ]
        for title, description, category, priority, due in samples:
            self.create(title, category, description, priority, due.isoformat() if due else None)
        return len(samples)

    def _row_to_dict(self, row: sqlite3.Row) -> Dict[str, Any]:
        """Convert a database row to the API's wire shape."""
        data = dict(row)
        data["completed"] = bool(data.get("completed", 0))
        data["description"] = data.get("description") or ""
        return data
