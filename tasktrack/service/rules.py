from __future__ import annotations

from tasktrack.errors import TaskConflictError, TaskValidationError
from tasktrack.models.task import TITLE_MAX_LENGTH, Task
from tasktrack.observability import get_json_logger, get_metrics
from tasktrack.store.interface import TaskStore

RECENT_TASKS_LIMIT = 5

TITLE_REQUIRED = "Title is required"
TITLE_TOO_LONG = f"Title must not exceed {TITLE_MAX_LENGTH} characters"
NOT_FOUND_OR_COMPLETED = "Task not found or already completed"
NUL_NOT_ALLOWED = "Title and description must not contain NUL characters"


class TaskRules:
    """Validation and state-transition rules for tasks.

    Store failures propagate unchanged as :class:`StoreUnavailableError`.
    """

    def __init__(self, store: TaskStore) -> None:
        self._store = store
        self._logger = get_json_logger("tasktrack.service")
        self._metrics = get_metrics()

    def list_recent(self) -> list[Task]:
        return self._store.find_recent_incomplete(RECENT_TASKS_LIMIT)

    def create(self, title: str | None, description: str | None = None) -> Task:
        clean_title = (title or "").strip()
        if not clean_title:
            raise TaskValidationError(TITLE_REQUIRED)
        if len(clean_title) > TITLE_MAX_LENGTH:
            raise TaskValidationError(TITLE_TOO_LONG)
        clean_description = (description or "").strip()
        # Text columns cannot hold NUL on PostgreSQL
        if "\x00" in clean_title or "\x00" in clean_description:
            raise TaskValidationError(NUL_NOT_ALLOWED)
        task = self._store.create(clean_title, clean_description)
        self._logger.info(
            "task created",
            extra={
                "event": "task_created",
                "service": "rules",
                "task_id": task.id,
                "attributes": {"title_len": len(task.title)},
            },
        )
        self._metrics.increment("tasks_created")
        return task

    def complete(self, task_id: int) -> Task:
        task = self._store.mark_completed(task_id)
        if task is None:
            raise TaskConflictError(NOT_FOUND_OR_COMPLETED)
        self._logger.info(
            "task completed",
            extra={"event": "task_completed", "service": "rules", "task_id": task.id},
        )
        self._metrics.increment("tasks_completed")
        return task


__all__ = [
    "TaskRules",
    "RECENT_TASKS_LIMIT",
    "TITLE_REQUIRED",
    "TITLE_TOO_LONG",
    "NOT_FOUND_OR_COMPLETED",
    "NUL_NOT_ALLOWED",
]
