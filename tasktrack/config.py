from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

DEFAULT_DATABASE_URL = "sqlite:///./tasktrack.db"
DEFAULT_PORT = 5000
DEFAULT_ENV = "development"
DEFAULT_API_URL = "http://localhost:5000"


@dataclass(frozen=True, slots=True)
class AppConfig:
    database_url: str
    port: int
    env: str
    api_url: str


def _parse_port(raw: str | None) -> int:
    value = (raw or "").strip()
    try:
        port = int(value) if value else DEFAULT_PORT
    except ValueError:
        return DEFAULT_PORT
    return port if 0 < port < 65536 else DEFAULT_PORT


def load_config(env: dict[str, str] | None = None) -> AppConfig:
    """Read the four recognised settings from the environment.

    ``env`` overrides values from ``os.environ``.
    """
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    return AppConfig(
        database_url=(e.get("DATABASE_URL") or "").strip() or DEFAULT_DATABASE_URL,
        port=_parse_port(e.get("PORT")),
        env=(e.get("APP_ENV") or "").strip() or DEFAULT_ENV,
        api_url=((e.get("API_URL") or "").strip() or DEFAULT_API_URL).rstrip("/"),
    )


__all__ = ["AppConfig", "load_config"]
