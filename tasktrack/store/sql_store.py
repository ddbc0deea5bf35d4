from __future__ import annotations

import datetime as _dt
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Engine,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import URL, Row, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from tasktrack.errors import StoreUnavailableError
from tasktrack.models.task import TITLE_MAX_LENGTH, Task
from tasktrack.observability import get_json_logger

from .interface import DEFAULT_RECENT_LIMIT, TaskStore

POOL_SIZE = 20
CONNECT_TIMEOUT_S = 2
IDLE_RECYCLE_S = 30

metadata = MetaData()

task_table = Table(
    "task",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(TITLE_MAX_LENGTH), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("completed", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

Index(
    "idx_task_completed_created",
    task_table.c.completed,
    task_table.c.created_at.desc(),
)

_COLUMNS = (
    task_table.c.id,
    task_table.c.title,
    task_table.c.description,
    task_table.c.completed,
    task_table.c.created_at,
)


def _normalize_url(database_url: str) -> URL:
    url = make_url(database_url)
    # Bare postgresql:// would pick psycopg2; we ship psycopg 3
    if url.drivername == "postgresql":
        url = url.set(drivername="postgresql+psycopg")
    return url


def create_engine_from_config(database_url: str) -> Engine:
    """Build the process-wide engine with a bounded connection pool.

    - PostgreSQL: 20 pooled connections, 2s connect timeout, connections older
      than 30s are recycled, pre-ping on checkout
    - SQLite: in-memory databases share one connection so every checkout sees
      the same data
    """
    url = _normalize_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(
        url,
        pool_size=POOL_SIZE,
        max_overflow=0,
        pool_timeout=CONNECT_TIMEOUT_S,
        pool_recycle=IDLE_RECYCLE_S,
        pool_pre_ping=True,
        connect_args={"connect_timeout": CONNECT_TIMEOUT_S},
    )


def init_schema(engine: Engine) -> None:
    """Create the task table and its (completed, created_at) index if missing."""
    logger = get_json_logger("tasktrack.store")
    try:
        metadata.create_all(engine, checkfirst=True)
    except SQLAlchemyError as exc:
        logger.error(
            "schema init failed",
            extra={"event": "store_error", "service": "store", "attributes": {"op": "init"}},
            exc_info=True,
        )
        raise StoreUnavailableError("Failed to initialize database") from exc
    logger.info(
        "database initialized",
        extra={"event": "store_ready", "service": "store", "attributes": {"table": "task"}},
    )


def _to_task(row: Row[Any]) -> Task:
    return Task.model_validate(dict(row._mapping))


class SqlTaskStore(TaskStore):
    """SQLAlchemy Core implementation of :class:`TaskStore`.

    Each call checks a connection out of the engine's pool inside
    ``engine.begin()`` and returns it on exit, committing on success and
    rolling back on error.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._logger = get_json_logger("tasktrack.store")

    def _fail(self, op: str, exc: SQLAlchemyError) -> StoreUnavailableError:
        self._logger.error(
            "store error",
            extra={
                "event": "store_error",
                "service": "store",
                "attributes": {"op": op, "error": str(exc)[:200]},
            },
        )
        return StoreUnavailableError(f"Database error during {op}")

    def find_recent_incomplete(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Task]:
        stmt = (
            select(*_COLUMNS)
            .where(task_table.c.completed.is_(False))
            .order_by(task_table.c.created_at.desc(), task_table.c.id.desc())
            .limit(limit)
        )
        try:
            with self._engine.begin() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise self._fail("find_recent_incomplete", exc) from exc
        return [_to_task(r) for r in rows]

    def create(self, title: str, description: str) -> Task:
        stmt = (
            insert(task_table)
            .values(
                title=title,
                description=description,
                completed=False,
                created_at=_dt.datetime.now(_dt.UTC),
            )
            .returning(*_COLUMNS)
        )
        try:
            with self._engine.begin() as conn:
                row = conn.execute(stmt).one()
        except SQLAlchemyError as exc:
            raise self._fail("create", exc) from exc
        return _to_task(row)

    def mark_completed(self, task_id: int) -> Task | None:
        # Single conditional update: concurrent completions race here and
        # exactly one of them gets a row back
        stmt = (
            update(task_table)
            .where(task_table.c.id == task_id, task_table.c.completed.is_(False))
            .values(completed=True)
            .returning(*_COLUMNS)
        )
        try:
            with self._engine.begin() as conn:
                row = conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise self._fail("mark_completed", exc) from exc
        return _to_task(row) if row is not None else None

    def find_by_id(self, task_id: int) -> Task | None:
        stmt = select(*_COLUMNS).where(task_table.c.id == task_id)
        try:
            with self._engine.begin() as conn:
                row = conn.execute(stmt).first()
        except SQLAlchemyError as exc:
            raise self._fail("find_by_id", exc) from exc
        return _to_task(row) if row is not None else None

    def delete_all(self) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(delete(task_table))
        except SQLAlchemyError as exc:
            raise self._fail("delete_all", exc) from exc


__all__ = [
    "SqlTaskStore",
    "create_engine_from_config",
    "init_schema",
    "task_table",
    "POOL_SIZE",
    "CONNECT_TIMEOUT_S",
    "IDLE_RECYCLE_S",
]
