#!/usr/bin/env python3
"""
GTD Task Server
---------------
JSON REST API over the SQLite task table.

Usage:
    python gtd_server.py
    python gtd_server.py --port 3000 --db ~/gtd.db --seed

API:
    GET    /health                   → { status, timestamp } (500 if the database is unreachable)
    GET    /api/tasks[?category=]    → [ task rows ]
    POST   /api/tasks                → body { title, description, category, priority, due_date }
    PUT    /api/tasks/<id>           → full update of the editable fields
    PATCH  /api/tasks/<id>/toggle    → flip completion
    DELETE /api/tasks/<id>           → { message }
    POST   /api/tasks/reorder        → body { category, taskIds }
    GET    /api/stats                → [ { category, total, completed, pending } ]

Errors are { error: "..." } with 400 / 404 / 405 / 429 / 500.
"""

import argparse
import logging
import sqlite3
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from pkg.gtd.config import Config
from pkg.gtd.ratelimit import SlidingWindowRateLimiter
from pkg.gtd.repository import TaskRepository
from pkg.gtd.schema import TaskCategory, Priority, parse_due_date

logger = logging.getLogger("gtd.server")


class BadRequest(Exception):
    """Invalid request body or query."""
    pass


# ── Request validation ───────────────────────────────────────────────────────

def _json_body() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest("body must be a JSON object")
    return data


def _task_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate the five editable fields of a task body."""
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        raise BadRequest("title is required")

    try:
        category = TaskCategory.parse(data.get("category") or TaskCategory.INBOX)
        priority = Priority.parse(data.get("priority"))
    except ValueError as e:
        raise BadRequest(str(e))

    try:
        due = parse_due_date(data.get("due_date"))
    except ValueError:
        raise BadRequest(f"Invalid due_date: {data.get('due_date')}")

    description = data.get("description") or ""
    if not isinstance(description, str):
        raise BadRequest("description must be a string")

    return {
        "title": title.strip(),
        "description": description,
        "category": category.value,
        "priority": priority.value if priority else None,
        "due_date": due.isoformat() if due else None,
    }


def _reorder_body(data: Dict[str, Any]) -> Tuple[str, list]:
    try:
        category = TaskCategory.parse(data.get("category"))
    except ValueError as e:
        raise BadRequest(str(e))
    task_ids = data.get("taskIds")
    if not isinstance(task_ids, list):
        raise BadRequest("taskIds must be a list")
    try:
        return category.value, [int(t) for t in task_ids]
    except (TypeError, ValueError):
        raise BadRequest("taskIds must be task ids")


# ── App factory ──────────────────────────────────────────────────────────────

def create_app(cfg: Optional[Config] = None) -> Flask:
    cfg = cfg or Config.load()
    app = Flask(__name__)
    repo = TaskRepository(cfg.db_path)
    if cfg.seed_sample_data:
        seeded = repo.seed_sample_data()
        if seeded:
            logger.info(f"Seeded {seeded} sample tasks")
    limiter = SlidingWindowRateLimiter(cfg.rate_limit_requests, cfg.rate_limit_window_secs)

    app.config["GTD"] = cfg
    app.extensions["gtd_repo"] = repo
    app.extensions["gtd_limiter"] = limiter

    # ── Middleware ───────────────────────────────────────────────────────────

    @app.before_request
    def rate_limit():
        if not request.path.startswith("/api/"):
            return None
        client = request.remote_addr or "unknown"
        if limiter.allow(client):
            return None
        logger.warning(f"Rate limit exceeded for {client} on {request.method} {request.path}")
        resp = jsonify({"error": "Too many requests from this IP, please try again later."})
        resp.status_code = 429
        resp.headers["Retry-After"] = str(limiter.retry_after(client))
        return resp

    @app.errorhandler(BadRequest)
    def bad_request(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(sqlite3.Error)
    def database_error(e):
        logger.exception(f"Database error on {request.method} {request.path}")
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(HTTPException)
    def http_error(e):
        if e.code == 404:
            return jsonify({"error": "Route not found"}), 404
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def unhandled(e):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return jsonify({"error": "Something broke!"}), 500

    # ── Routes ───────────────────────────────────────────────────────────────

    @app.route("/health")
    def health():
        repo.ping()
        return jsonify({"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()})

    @app.route("/api/tasks", methods=["GET"])
    def list_tasks():
        category = request.args.get("category")
        if category:
            try:
                category = TaskCategory.parse(category).value
            except ValueError as e:
                raise BadRequest(str(e))
        return jsonify(repo.list(category))

    @app.route("/api/tasks", methods=["POST"])
    def create_task():
        fields = _task_fields(_json_body())
        row = repo.create(**fields)
        logger.info(f"Created task {row['id']} in {row['category']}")
        return jsonify(row), 201

    @app.route("/api/tasks/reorder", methods=["POST"])
    def reorder_tasks():
        category, task_ids = _reorder_body(_json_body())
        repo.reorder(category, task_ids)
        return jsonify({"message": "Tasks reordered successfully"})

    @app.route("/api/tasks/<int:task_id>", methods=["PUT"])
    def update_task(task_id):
        fields = _task_fields(_json_body())
        row = repo.update(task_id, **fields)
        if not row:
            return jsonify({"error": "Task not found"}), 404
        return jsonify(row)

    @app.route("/api/tasks/<int:task_id>/toggle", methods=["PATCH"])
    def toggle_task(task_id):
        row = repo.toggle(task_id)
        if not row:
            return jsonify({"error": "Task not found"}), 404
        return jsonify(row)

    @app.route("/api/tasks/<int:task_id>", methods=["DELETE"])
    def delete_task(task_id):
        if not repo.delete(task_id):
            return jsonify({"error": "Task not found"}), 404
        logger.info(f"Deleted task {task_id}")
        return jsonify({"message": "Task deleted successfully"})

    @app.route("/api/stats")
    def stats():
        return jsonify(repo.stats())

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="GTD Task Server")
    parser.add_argument("--config", help="Path to gtd.yaml (overrides GTD_CONFIG env var)")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to the task database (overrides GTD_DB env var)")
    parser.add_argument("--seed", action="store_true", help="Insert sample tasks into an empty database")
    args = parser.parse_args(argv)

    cfg = Config.load(args.config)
    if args.host:
        cfg.host = args.host
    if args.port:
        cfg.port = args.port
    if args.db:
        cfg.db_path = args.db
        cfg.resolve_paths()
    if args.seed:
        cfg.seed_sample_data = True

    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s [gtd] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    app = create_app(cfg)
    logger.info(f"Serving http://{cfg.host}:{cfg.port}  db={cfg.db_path}")
    app.run(host=cfg.host, port=cfg.port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
