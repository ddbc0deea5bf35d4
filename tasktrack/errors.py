from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    INFRASTRUCTURE = "infrastructure"


class TaskError(Exception):
    """Base error raised by the rules and store layers.

    Carries a discriminated ``kind`` so HTTP handlers can pick a status code
    without inspecting the message text.
    """

    kind: ErrorKind = ErrorKind.INFRASTRUCTURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskValidationError(TaskError):
    kind = ErrorKind.VALIDATION


class TaskConflictError(TaskError):
    """Completion target is missing or already completed (not distinguishable)."""

    kind = ErrorKind.CONFLICT


class StoreUnavailableError(TaskError):
    kind = ErrorKind.INFRASTRUCTURE


__all__ = [
    "ErrorKind",
    "TaskError",
    "TaskValidationError",
    "TaskConflictError",
    "StoreUnavailableError",
]
