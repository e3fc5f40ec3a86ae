"""
HTTP client for the GTD REST API.

Thin wrapper over requests: one method per endpoint, JSON in and out.
Any non-2xx response raises ApiError carrying the server's error text.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised when the API answers with an error or cannot be reached."""

    def __init__(self, status: int, message: str):
        super().__init__(f"{status}: {message}" if status else message)
        self.status = status
        self.message = message


class GtdApiClient:
    """Client for gtd_server.py."""

    def __init__(self, base_url: str = "http://127.0.0.1:3000", timeout: float = 2.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = requests.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise ApiError(0, str(e)) from e

        if not r.ok:
            try:
                message = r.json().get("error", r.reason)
            except (ValueError, AttributeError):
                message = r.text or r.reason
            raise ApiError(r.status_code, message)
        return r.json()

    # ── Tasks ────────────────────────────────────────────────────────────────

    def list_tasks(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"category": category} if category else None
        return self._request("GET", "/api/tasks", params=params)

    def create_task(
        self,
        title: str,
        category: str = "inbox",
        description: str = "",
        priority: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._request("POST", "/api/tasks", json={
            "title": title,
            "description": description,
            "category": category,
            "priority": priority,
            "due_date": due_date,
        })

    def update_task(
        self,
        task_id: int,
        title: str,
        category: str,
        description: str = "",
        priority: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._request("PUT", f"/api/tasks/{task_id}", json={
            "title": title,
            "description": description,
            "category": category,
            "priority": priority,
            "due_date": due_date,
        })

    def toggle_task(self, task_id: int) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/tasks/{task_id}/toggle")

    def delete_task(self, task_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/tasks/{task_id}")

    def reorder(self, category: str, task_ids: List[int]) -> Dict[str, Any]:
        return self._request("POST", "/api/tasks/reorder", json={"category": category, "taskIds": task_ids})

    # ── Misc ─────────────────────────────────────────────────────────────────

    def stats(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/stats")

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")
