from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol

from tasktrack.models.task import Task
from tasktrack.observability import get_json_logger

from .api import ApiError

SUCCESS_BANNER_SECONDS = 3.0

LOAD_FAILED = "Failed to load tasks. Please try again."
CREATE_FAILED = "Failed to create task. Please try again."
COMPLETE_FAILED = "Failed to complete task. Please try again."
CREATED = "Task created successfully!"
COMPLETED = "Task completed! Well done!"


class TaskApi(Protocol):
    def get_tasks(self) -> list[Task]: ...

    def create_task(self, title: str, description: str) -> Task: ...

    def complete_task(self, task_id: int) -> Task: ...


class TaskBoard:
    """View state for the form panel and the task list panel.

    Mirrors what a single-page UI keeps in component state: the list is
    loading until the first fetch resolves, errors stay until dismissed, and
    success banners expire on their own.
    """

    def __init__(self, api: TaskApi, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._api = api
        self._clock = clock
        self._logger = get_json_logger("tasktrack.client")
        self.tasks: list[Task] = []
        self.is_loading = True
        self.is_submitting = False
        self.completing_task_id: int | None = None
        self.error: str | None = None
        self._success: tuple[str, float] | None = None
        self.title = ""
        self.description = ""

    # ----- derived state -----
    @property
    def can_submit(self) -> bool:
        return bool(self.title.strip()) and not self.is_submitting

    @property
    def success_message(self) -> str | None:
        if self._success is None:
            return None
        message, expires_at = self._success
        if self._clock() >= expires_at:
            self._success = None
            return None
        return message

    def is_completing(self, task_id: int) -> bool:
        return self.completing_task_id == task_id

    # ----- actions -----
    def _flash(self, message: str) -> None:
        self._success = (message, self._clock() + SUCCESS_BANNER_SECONDS)

    def dismiss_error(self) -> None:
        self.error = None

    def load(self) -> None:
        self.is_loading = True
        try:
            self.tasks = self._api.get_tasks()
            self.error = None
        except ApiError as exc:
            self._logger.debug(
                "fetch tasks failed",
                extra={"event": "client_error", "attributes": {"error": exc.message}},
            )
            self.error = LOAD_FAILED
        finally:
            self.is_loading = False

    def submit(self) -> bool:
        """Create a task from the form fields; returns True on success."""
        if not self.can_submit:
            return False
        self.is_submitting = True
        self.error = None
        try:
            self._api.create_task(self.title, self.description)
        except ApiError as exc:
            self._logger.debug(
                "create task failed",
                extra={"event": "client_error", "attributes": {"error": exc.message}},
            )
            self.error = CREATE_FAILED
            return False
        finally:
            self.is_submitting = False
        self.load()
        self._flash(CREATED)
        self.title = ""
        self.description = ""
        return True

    def complete(self, task_id: int) -> bool:
        if self.completing_task_id is not None:
            return False
        self.completing_task_id = task_id
        self.error = None
        try:
            self._api.complete_task(task_id)
        except ApiError as exc:
            self._logger.debug(
                "complete task failed",
                extra={
                    "event": "client_error",
                    "task_id": task_id,
                    "attributes": {"error": exc.message},
                },
            )
            self.error = COMPLETE_FAILED
            return False
        finally:
            self.completing_task_id = None
        # Drop locally; no re-fetch
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self._flash(COMPLETED)
        return True


__all__ = ["TaskApi", "TaskBoard", "SUCCESS_BANNER_SECONDS"]
