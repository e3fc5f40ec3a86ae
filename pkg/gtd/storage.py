"""
Key/value "local storage" for the client-side task store.

Mirrors the browser's localStorage contract: string keys, string values,
getItem returns None for absent keys. The persistent backend is a single
SQLite table; MemoryStorage keeps everything in a dict.
"""
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional


class StorageError(Exception):
    """Raised when the storage backend cannot read or write a value."""
    pass


@contextmanager
def _connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """Open a connection in WAL mode; commit or roll back, then close."""
    conn = sqlite3.connect(db_path)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        with conn:
            yield conn
    finally:
        conn.close()


class LocalStorage:
    """SQLite-backed key/value store."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize storage and create the table if needed."""
        if db_path is None:
            db_path = str(Path.home() / ".local" / "share" / "gtd" / "local_storage.db")
        self.db_path = db_path
        try:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            with _connect(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS local_storage (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
                conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Cannot open storage at {db_path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM local_storage WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read {key}: {e}") from e
        return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with _connect(self.db_path) as conn:
                conn.execute("""
                    INSERT INTO local_storage (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """, (key, value, now))
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot write {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            with _connect(self.db_path) as conn:
                conn.execute("DELETE FROM local_storage WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot remove {key}: {e}") from e


class MemoryStorage:
    """In-process storage for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)
