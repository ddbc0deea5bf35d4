from __future__ import annotations

from typing import Protocol

from tasktrack.models.task import Task

DEFAULT_RECENT_LIMIT = 5


class TaskStore(Protocol):
    """Task persistence capability.

    The rules layer depends only on this protocol so the SQL store can be
    swapped for an in-memory fake.
    """

    def find_recent_incomplete(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Task]:
        """Return up to ``limit`` incomplete tasks, newest first."""

    def create(self, title: str, description: str) -> Task:
        """Insert an incomplete task and return the persisted row."""

    def mark_completed(self, task_id: int) -> Task | None:
        """Flip ``completed`` to True if currently False.

        Returns None when no row matched: the id is unknown or the task was
        already completed.
        """

    def find_by_id(self, task_id: int) -> Task | None:
        """Return the task or None."""

    def delete_all(self) -> None:
        """Remove every task (environment reset only)."""


__all__ = ["TaskStore", "DEFAULT_RECENT_LIMIT"]
