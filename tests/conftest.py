from __future__ import annotations

import os
import time
from collections.abc import Callable, Generator
from functools import lru_cache

import pytest
from sqlalchemy import Engine, text

from tasktrack.observability import get_json_logger, reset_metrics
from tasktrack.store.sql_store import SqlTaskStore, create_engine_from_config, init_schema
from tests.helpers.store import InMemoryTaskStore

APP_LOGGERS = (
    "tasktrack",
    "tasktrack.store",
    "tasktrack.service",
    "tasktrack.gateway",
    "tasktrack.client",
)


@pytest.fixture(autouse=True)
def _fresh_metrics() -> None:
    reset_metrics()


@pytest.fixture(scope="session", autouse=True)
def _json_logs() -> None:
    """Bind app loggers once, as JSON, to the session-wide stdout capture."""
    os.environ.setdefault("LOG_FORMAT", "json")
    for name in APP_LOGGERS:
        get_json_logger(name)


@pytest.fixture()
def memory_store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture()
def sqlite_engine() -> Generator[Engine, None, None]:
    engine = create_engine_from_config("sqlite://")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def sql_store(sqlite_engine: Engine) -> SqlTaskStore:
    return SqlTaskStore(sqlite_engine)


def _wait_until(timeout_s: float, pause_s: float, check: Callable[[], bool]) -> bool:
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        if check():
            return True
        time.sleep(pause_s)
    return False


@lru_cache(maxsize=1)
def _postgres_reachable(url: str) -> bool:
    def _ping() -> bool:
        engine = create_engine_from_config(url)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False
        finally:
            engine.dispose()

    return _wait_until(3.0, 0.2, _ping)


@pytest.fixture()
def postgres_engine() -> Generator[Engine, None, None]:
    """Engine for TEST_DATABASE_URL; skips when unset or unreachable."""
    url = os.getenv("TEST_DATABASE_URL", "").strip()
    if not url or not _postgres_reachable(url):
        pytest.skip("PostgreSQL not available; set TEST_DATABASE_URL to run")
    engine = create_engine_from_config(url)
    init_schema(engine)
    SqlTaskStore(engine).delete_all()
    yield engine
    SqlTaskStore(engine).delete_all()
    engine.dispose()
