from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from tasktrack.models.task import Task

DEFAULT_TIMEOUT_S = 10.0

_TASK = TypeAdapter(Task)
_TASK_LIST = TypeAdapter(list[Task])

T = TypeVar("T")


class ApiError(Exception):
    """Non-2xx response or transport failure talking to the task API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TaskApiClient:
    """Thin synchronous client for the ``/api/tasks`` endpoints.

    Pass ``http`` to reuse an existing ``httpx.Client`` (tests hand in a
    client bound to a mock transport or a FastAPI ``TestClient``).
    """

    def __init__(self, base_url: str, *, http: httpx.Client | None = None) -> None:
        self._http = http or httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=DEFAULT_TIMEOUT_S,
        )

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, json: Any = None) -> tuple[Any, int]:
        try:
            resp = self._http.request(method, f"/api{path}", json=json)
        except httpx.HTTPError as exc:
            raise ApiError(f"request failed: {exc}") from exc
        if resp.status_code >= 400:
            raise ApiError(_error_message(resp), resp.status_code)
        try:
            data = resp.json()
        except ValueError as exc:
            raise ApiError("invalid response", resp.status_code) from exc
        return data, resp.status_code

    def get_tasks(self) -> list[Task]:
        data, status = self._request("GET", "/tasks")
        return _parse(_TASK_LIST, data, status)

    def create_task(self, title: str, description: str) -> Task:
        data, status = self._request(
            "POST", "/tasks", {"title": title, "description": description}
        )
        return _parse(_TASK, data, status)

    def complete_task(self, task_id: int) -> Task:
        data, status = self._request("PATCH", f"/tasks/{task_id}/complete")
        return _parse(_TASK, data, status)


def _parse(adapter: TypeAdapter[T], data: Any, status_code: int) -> T:
    # A 2xx body that is not the expected shape (wrong server, proxy page)
    try:
        return adapter.validate_python(data)
    except ValidationError as exc:
        raise ApiError("invalid response", status_code) from exc


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return f"HTTP {resp.status_code}"


__all__ = ["ApiError", "TaskApiClient"]
