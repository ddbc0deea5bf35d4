from __future__ import annotations

from pathlib import Path

import pytest

from tasktrack.cli import main
from tasktrack.store.sql_store import SqlTaskStore, create_engine_from_config, init_schema


def test_reset_deletes_all_tasks(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    url = f"sqlite:///{tmp_path / 'tasks.db'}"
    engine = create_engine_from_config(url)
    init_schema(engine)
    store = SqlTaskStore(engine)
    store.create("Old", "")
    monkeypatch.setenv("DATABASE_URL", url)

    with pytest.raises(SystemExit) as excinfo:
        main(["reset"])

    assert excinfo.value.code == 0
    assert store.find_recent_incomplete() == []
    assert "all tasks deleted" in capsys.readouterr().out
    engine.dispose()


def test_serve_exits_1_when_database_unusable(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    # A directory cannot be opened as a SQLite database file
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path}")

    with pytest.raises(SystemExit) as excinfo:
        main(["serve"])

    assert excinfo.value.code == 1


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    main([])
    assert "serve" in capsys.readouterr().out
