from .interface import DEFAULT_RECENT_LIMIT, TaskStore
from .sql_store import SqlTaskStore, create_engine_from_config, init_schema

__all__ = [
    "DEFAULT_RECENT_LIMIT",
    "TaskStore",
    "SqlTaskStore",
    "create_engine_from_config",
    "init_schema",
]
