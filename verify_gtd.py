#!/usr/bin/env python3
"""
Quick verification that the GTD store and board work end-to-end.
"""
import json

from pkg.gtd.board import GtdBoard
from pkg.gtd.config import Config
from pkg.gtd.dnd import DataTransfer, MIME_JSON
from pkg.gtd.schema import TaskCategory, TaskFormData, Priority
from pkg.gtd.storage import LocalStorage
from pkg.gtd.store import TaskStore

DB_PATH = "/tmp/gtd_verify_local_storage.db"


def main():
    print("=" * 60)
    print("GTD Store Verification")
    print("=" * 60)

    print("\n[1/6] Opening local storage...")
    cfg = Config(storage_path=DB_PATH)
    LocalStorage(DB_PATH).remove_item(cfg.storage_key)
    board = GtdBoard.from_config(cfg)
    print("✅ Store loaded (empty)")

    print("\n[2/6] Capturing tasks into the inbox...")
    board.add_task(TaskFormData(title="Call the dentist", priority=Priority.HIGH))
    board.add_task(TaskFormData(title="Read the GTD book", priority=Priority.LOW))
    board.add_task(TaskFormData(title="   "))  # rejected
    print(board.summary())

    print("\n[3/6] Reordering by drag and drop...")
    first, second = board.current_tasks()
    dt = board.drag_start(second.id)
    result = board.drop_on_task(first.id, dt)
    board.drag_end()
    print(f"   → {result.kind.value}: {list(result.task_ids)}")

    print("\n[4/6] Moving a task via the sidebar...")
    dt = board.drag_start(first.id)
    result = board.drop_on_sidebar(TaskCategory.NEXT, dt)
    board.drag_end()
    print(f"   → {result.kind.value}: {result.task_id} → {result.category.value}")

    print("\n[5/6] Dropping a broken payload...")
    bad = DataTransfer()
    bad.set_data(MIME_JSON, "invalid-json")
    result = board.drop_on_sidebar(TaskCategory.SOMEDAY, bad)
    print(f"   → {result.kind.value} ({result.reason})")

    print("\n[6/6] Reloading from storage...")
    reloaded = TaskStore(LocalStorage(DB_PATH))
    counts = {c.value: n for c, n in reloaded.counts().items()}
    print(f"   Counts: {json.dumps(counts)}")
    assert counts["next"] == 1 and counts["inbox"] == 1

    print("\n" + "=" * 60)
    print("✅ ALL CHECKS PASSED")
    print("=" * 60)
    print(f"Test database: {DB_PATH}")


if __name__ == "__main__":
    main()
