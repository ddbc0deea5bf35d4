from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from fastapi import Body, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tasktrack.errors import ErrorKind, TaskError
from tasktrack.models.task import CreateTaskRequest, Task
from tasktrack.observability import get_json_logger, get_metrics, use_request_context
from tasktrack.service.rules import TaskRules
from tasktrack.store.interface import TaskStore

API_PREFIX = "/api"

FETCH_FAILED = "Failed to fetch tasks"
CREATE_FAILED = "Failed to create task"
INVALID_TASK_ID = "Invalid task ID"
INVALID_BODY = "Invalid request body"

# Ids are stored as 32-bit signed integers
_TASK_ID_RE = re.compile(r"[+-]?[0-9]+")
_TASK_ID_MIN = -(2**31)
_TASK_ID_MAX = 2**31 - 1


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _task_json(task: Task) -> dict[str, Any]:
    return task.model_dump(mode="json")


def parse_task_id(raw: str) -> int | None:
    """Parse a path segment as a task id; None when it is not a plain integer."""
    if not _TASK_ID_RE.fullmatch(raw):
        return None
    value = int(raw)
    if not _TASK_ID_MIN <= value <= _TASK_ID_MAX:
        return None
    return value


def create_app(store: TaskStore) -> FastAPI:
    app = FastAPI(title="tasktrack")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    logger = get_json_logger("tasktrack.gateway")
    metrics = get_metrics()
    rules = TaskRules(store)

    @app.middleware("http")
    async def _request_context(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        with use_request_context(
            request.method, request.url.path, request.headers.get("X-Request-ID")
        ) as ctx:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - started) * 1000.0
            logger.info(
                "request handled",
                extra={
                    "event": "http_request",
                    "service": "gateway",
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 3),
                },
            )
            metrics.increment(
                "http_requests", {"method": request.method, "status": str(response.status_code)}
            )
            response.headers["X-Request-ID"] = ctx["request_id"]
            return response

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(
            "request rejected",
            extra={
                "event": "gateway_error",
                "service": "gateway",
                "attributes": {"kind": ErrorKind.VALIDATION.value, "errors": len(exc.errors())},
            },
        )
        return _error(400, INVALID_BODY)

    def _log_failure(route: str, exc: Exception, task_id: int | None = None) -> None:
        kind = exc.kind if isinstance(exc, TaskError) else ErrorKind.INFRASTRUCTURE
        extra: dict[str, Any] = {
            "event": "gateway_error",
            "service": "gateway",
            "attributes": {"route": route, "kind": kind.value, "error": str(exc)[:200]},
        }
        if task_id is not None:
            extra["task_id"] = task_id
        if kind is ErrorKind.INFRASTRUCTURE:
            logger.error("task request failed", extra=extra)
        else:
            logger.info("task request rejected", extra=extra)
        metrics.increment("task_errors", {"route": route, "kind": kind.value})

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "OK", "timestamp": datetime.now(UTC).isoformat()}

    @app.get(f"{API_PREFIX}/tasks")
    async def list_tasks() -> Response:
        try:
            tasks = await asyncio.to_thread(rules.list_recent)
        except Exception as exc:
            _log_failure("list", exc)
            return _error(500, FETCH_FAILED)
        return JSONResponse(status_code=200, content=[_task_json(t) for t in tasks])

    @app.post(f"{API_PREFIX}/tasks")
    async def create_task(body: CreateTaskRequest | None = Body(default=None)) -> Response:
        payload = body or CreateTaskRequest()
        try:
            task = await asyncio.to_thread(rules.create, payload.title, payload.description)
        except TaskError as exc:
            _log_failure("create", exc)
            if exc.kind is ErrorKind.VALIDATION:
                return _error(400, exc.message)
            return _error(500, CREATE_FAILED)
        except Exception as exc:
            _log_failure("create", exc)
            return _error(500, CREATE_FAILED)
        return JSONResponse(status_code=201, content=_task_json(task))

    @app.patch(f"{API_PREFIX}/tasks/{{task_id}}/complete")
    async def complete_task(task_id: str) -> Response:
        parsed = parse_task_id(task_id)
        if parsed is None:
            metrics.increment("task_errors", {"route": "complete", "kind": "invalid_id"})
            return _error(400, INVALID_TASK_ID)
        try:
            task = await asyncio.to_thread(rules.complete, parsed)
        except TaskError as exc:
            _log_failure("complete", exc, parsed)
            if exc.kind is ErrorKind.CONFLICT:
                return _error(404, exc.message)
            return _error(500, exc.message)
        except Exception as exc:
            _log_failure("complete", exc, parsed)
            return _error(500, str(exc) or "Failed to complete task")
        return JSONResponse(status_code=200, content=_task_json(task))

    return app


__all__ = ["create_app", "parse_task_id", "API_PREFIX"]
