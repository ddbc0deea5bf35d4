from __future__ import annotations

import datetime as dt
import itertools

from tasktrack.errors import StoreUnavailableError
from tasktrack.models.task import Task
from tasktrack.store.interface import DEFAULT_RECENT_LIMIT, TaskStore


class InMemoryTaskStore(TaskStore):
    """Dict-backed TaskStore with a deterministic, strictly increasing clock."""

    def __init__(self) -> None:
        self._rows: dict[int, Task] = {}
        self._ids = itertools.count(1)
        self._base = dt.datetime(2025, 1, 1, tzinfo=dt.UTC)
        self.calls: list[str] = []

    def find_recent_incomplete(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Task]:
        self.calls.append("find_recent_incomplete")
        pending = [t for t in self._rows.values() if not t.completed]
        pending.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return [t.model_copy() for t in pending[:limit]]

    def create(self, title: str, description: str) -> Task:
        self.calls.append("create")
        task_id = next(self._ids)
        task = Task(
            id=task_id,
            title=title,
            description=description,
            completed=False,
            created_at=self._base + dt.timedelta(seconds=task_id),
        )
        self._rows[task_id] = task
        return task.model_copy()

    def mark_completed(self, task_id: int) -> Task | None:
        self.calls.append("mark_completed")
        task = self._rows.get(task_id)
        if task is None or task.completed:
            return None
        task.completed = True
        return task.model_copy()

    def find_by_id(self, task_id: int) -> Task | None:
        self.calls.append("find_by_id")
        task = self._rows.get(task_id)
        return task.model_copy() if task is not None else None

    def delete_all(self) -> None:
        self.calls.append("delete_all")
        self._rows.clear()


class FailingTaskStore(TaskStore):
    """Every operation fails the way an unreachable database does."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def _fail(self, op: str) -> StoreUnavailableError:
        self.calls.append(op)
        return StoreUnavailableError(f"Database error during {op}")

    def find_recent_incomplete(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Task]:
        raise self._fail("find_recent_incomplete")

    def create(self, title: str, description: str) -> Task:
        raise self._fail("create")

    def mark_completed(self, task_id: int) -> Task | None:
        raise self._fail("mark_completed")

    def find_by_id(self, task_id: int) -> Task | None:
        raise self._fail("find_by_id")

    def delete_all(self) -> None:
        raise self._fail("delete_all")
