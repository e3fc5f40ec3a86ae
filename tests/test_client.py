"""Tests for the REST API client (client.py). requests is mocked throughout."""
from unittest.mock import MagicMock, patch

import pytest
import requests

from pkg.gtd.client import ApiError, GtdApiClient


def _response(status=200, payload=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.reason = reason
    resp.json.return_value = payload
    resp.text = ""
    return resp


@pytest.fixture
def client():
    return GtdApiClient("http://localhost:3000/")


class TestGtdApiClient:

    def test_list_tasks_with_category(self, client):
        with patch("pkg.gtd.client.requests.request", return_value=_response(payload=[])) as mock_req:
            assert client.list_tasks("next") == []
        mock_req.assert_called_once_with(
            "GET", "http://localhost:3000/api/tasks", timeout=2.0, params={"category": "next"},
        )

    def test_create_task_body(self, client):
        created = {"id": 1, "title": "A", "category": "inbox"}
        with patch("pkg.gtd.client.requests.request", return_value=_response(201, created)) as mock_req:
            assert client.create_task("A", priority="high") == created
        body = mock_req.call_args.kwargs["json"]
        assert body["title"] == "A"
        assert body["category"] == "inbox"
        assert body["priority"] == "high"

    def test_reorder_sends_task_ids(self, client):
        with patch("pkg.gtd.client.requests.request", return_value=_response(payload={"message": "ok"})) as mock_req:
            client.reorder("inbox", [3, 1, 2])
        args, kwargs = mock_req.call_args
        assert args == ("POST", "http://localhost:3000/api/tasks/reorder")
        assert kwargs["json"] == {"category": "inbox", "taskIds": [3, 1, 2]}

    def test_toggle_and_delete_paths(self, client):
        with patch("pkg.gtd.client.requests.request", return_value=_response(payload={})) as mock_req:
            client.toggle_task(7)
            client.delete_task(7)
        calls = [c.args for c in mock_req.call_args_list]
        assert calls == [
            ("PATCH", "http://localhost:3000/api/tasks/7/toggle"),
            ("DELETE", "http://localhost:3000/api/tasks/7"),
        ]

    def test_error_response_raises_api_error(self, client):
        resp = _response(404, {"error": "Task not found"}, reason="NOT FOUND")
        with patch("pkg.gtd.client.requests.request", return_value=resp):
            with pytest.raises(ApiError) as exc:
                client.toggle_task(99)
        assert exc.value.status == 404
        assert exc.value.message == "Task not found"

    def test_error_without_json_body(self, client):
        resp = _response(502, reason="Bad Gateway")
        resp.json.side_effect = ValueError("no json")
        with patch("pkg.gtd.client.requests.request", return_value=resp):
            with pytest.raises(ApiError) as exc:
                client.stats()
        assert exc.value.status == 502
        assert exc.value.message == "Bad Gateway"

    def test_connection_error(self, client):
        with patch("pkg.gtd.client.requests.request", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(ApiError) as exc:
                client.health()
        assert exc.value.status == 0
