from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from tasktrack.client.api import ApiError, TaskApiClient
from tasktrack.gateway.app import create_app
from tests.helpers.store import InMemoryTaskStore

TASK = {
    "id": 3,
    "title": "Buy milk",
    "description": "",
    "completed": False,
    "created_at": "2025-01-01T10:00:00+00:00",
}


def _mock_client(handler: httpx.MockTransport) -> TaskApiClient:
    return TaskApiClient(
        "http://api.test",
        http=httpx.Client(transport=handler, base_url="http://api.test"),
    )


def test_requests_use_api_prefix_and_parse_tasks() -> None:
    seen: list[tuple[str, str, bytes]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.content))
        if request.method == "GET":
            return httpx.Response(200, json=[TASK])
        if request.method == "POST":
            return httpx.Response(201, json=TASK)
        return httpx.Response(200, json={**TASK, "completed": True})

    api = _mock_client(httpx.MockTransport(handler))

    assert [t.id for t in api.get_tasks()] == [3]
    assert api.create_task("Buy milk", "").title == "Buy milk"
    assert api.complete_task(3).completed is True

    assert [(m, p) for m, p, _ in seen] == [
        ("GET", "/api/tasks"),
        ("POST", "/api/tasks"),
        ("PATCH", "/api/tasks/3/complete"),
    ]
    assert json.loads(seen[1][2]) == {"title": "Buy milk", "description": ""}


def test_error_body_becomes_api_error() -> None:
    api = _mock_client(
        httpx.MockTransport(lambda r: httpx.Response(404, json={"error": "Task not found"}))
    )
    with pytest.raises(ApiError) as excinfo:
        api.complete_task(9)
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Task not found"


def test_non_json_error_body() -> None:
    api = _mock_client(httpx.MockTransport(lambda r: httpx.Response(502, text="bad gateway")))
    with pytest.raises(ApiError) as excinfo:
        api.get_tasks()
    assert excinfo.value.message == "HTTP 502"


def test_transport_failure_becomes_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api = _mock_client(httpx.MockTransport(handler))
    with pytest.raises(ApiError) as excinfo:
        api.get_tasks()
    assert excinfo.value.status_code is None


def test_against_real_app() -> None:
    api = TaskApiClient("http://testserver", http=TestClient(create_app(InMemoryTaskStore())))

    created = api.create_task("  Real  ", " round trip ")
    assert (created.title, created.description) == ("Real", "round trip")
    assert [t.id for t in api.get_tasks()] == [created.id]

    api.complete_task(created.id)
    assert api.get_tasks() == []
    with pytest.raises(ApiError) as excinfo:
        api.complete_task(created.id)
    assert excinfo.value.status_code == 404


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>ok</html>"),
        httpx.Response(200, json={"error": "x"}),
        httpx.Response(200, json=[{"id": "not-a-number"}]),
    ],
)
def test_unexpected_success_body_becomes_api_error(response: httpx.Response) -> None:
    api = _mock_client(httpx.MockTransport(lambda r: response))
    with pytest.raises(ApiError) as excinfo:
        api.get_tasks()
    assert excinfo.value.message == "invalid response"
    assert excinfo.value.status_code == 200


def test_unexpected_task_body_on_create_and_complete() -> None:
    api = _mock_client(httpx.MockTransport(lambda r: httpx.Response(200, json=[TASK])))
    with pytest.raises(ApiError):
        api.create_task("Buy milk", "")
    with pytest.raises(ApiError):
        api.complete_task(3)
