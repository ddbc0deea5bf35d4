from __future__ import annotations

import argparse
import sys

from tasktrack.config import AppConfig, load_config
from tasktrack.errors import StoreUnavailableError
from tasktrack.observability import configure_uvicorn_logging, get_json_logger


def serve(cfg: AppConfig) -> int:
    """Initialise the schema and run the HTTP server until interrupted.

    Returns 1 when the database cannot be initialised.
    """
    import uvicorn

    from tasktrack.gateway.app import create_app
    from tasktrack.store.sql_store import SqlTaskStore, create_engine_from_config, init_schema

    logger = get_json_logger("tasktrack")
    configure_uvicorn_logging()
    engine = create_engine_from_config(cfg.database_url)
    try:
        init_schema(engine)
    except StoreUnavailableError:
        logger.error(
            "failed to start server",
            extra={"event": "server_start_failed", "service": "server"},
        )
        engine.dispose()
        return 1
    app = create_app(SqlTaskStore(engine))
    logger.info(
        "server starting",
        extra={
            "event": "server_start",
            "service": "server",
            "attributes": {"port": cfg.port, "env": cfg.env},
        },
    )
    try:
        uvicorn.run(app, host="0.0.0.0", port=cfg.port, log_config=None)
    finally:
        engine.dispose()
    return 0


def reset(cfg: AppConfig) -> int:
    """Delete every task; for resetting a test or demo environment."""
    from tasktrack.store.sql_store import SqlTaskStore, create_engine_from_config, init_schema

    engine = create_engine_from_config(cfg.database_url)
    try:
        init_schema(engine)
        SqlTaskStore(engine).delete_all()
    except StoreUnavailableError as exc:
        sys.stderr.write(f"error: {exc.message}\n")
        return 1
    finally:
        engine.dispose()
    sys.stdout.write("all tasks deleted\n")
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser("tasktrack")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("serve", help="Run the HTTP API (initialises the database first)")

    p_client = sub.add_parser("client", help="Launch the interactive terminal client")
    p_client.add_argument("--base-url", help="API base URL (default: API_URL env)")

    sub.add_parser("reset", help="Delete all tasks from DATABASE_URL")

    args = parser.parse_args(argv)
    cfg = load_config()
    cmd = str(getattr(args, "cmd", None) or "")

    if cmd == "serve":
        raise SystemExit(serve(cfg))

    if cmd == "reset":
        raise SystemExit(reset(cfg))

    if cmd == "client":
        # Defer import to keep the server path free of client modules
        from tasktrack.client.cli import main as client_main

        raise SystemExit(client_main(args.base_url or cfg.api_url))

    parser.print_help()


if __name__ == "__main__":
    main()
