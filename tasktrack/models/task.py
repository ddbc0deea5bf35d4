from __future__ import annotations

import datetime as _dt

from pydantic import BaseModel, field_validator

TITLE_MAX_LENGTH = 255


class Task(BaseModel):
    """A persisted task row.

    - ``id`` and ``created_at`` are assigned by the store on insert
    - ``completed`` only ever moves from False to True
    """

    id: int
    title: str
    description: str = ""
    completed: bool = False
    created_at: _dt.datetime

    @field_validator("description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: _dt.datetime) -> _dt.datetime:
        # SQLite hands back naive timestamps; everything is written in UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=_dt.UTC)
        return value


class CreateTaskRequest(BaseModel):
    title: str | None = None
    description: str | None = None


__all__ = ["Task", "CreateTaskRequest", "TITLE_MAX_LENGTH"]
