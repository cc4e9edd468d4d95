from __future__ import annotations

import types

import pytest
from sqlalchemy import create_engine, inspect

from scripts import run_migrations as runner


@pytest.fixture
def database_url(tmp_path, monkeypatch) -> str:
    url = f"sqlite:///{tmp_path / 'migrations.sqlite'}"
    monkeypatch.setenv("GYMIDLE_DATABASE_URL", url)
    return url


def _config():
    return runner.get_alembic_config(str(runner.BACKEND_ROOT / "alembic.ini"))


def test_resolve_database_url_prefers_env(database_url: str) -> None:
    config = _config()
    assert runner.resolve_database_url(config) == database_url
    assert config.get_main_option("sqlalchemy.url") == database_url


def test_resolve_database_url_requires_a_url(monkeypatch) -> None:
    monkeypatch.delenv("GYMIDLE_DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError):
        runner.resolve_database_url(_config())


def test_wait_for_database_succeeds_with_sqlite(tmp_path) -> None:
    db_path = tmp_path / "test.sqlite"
    url = f"sqlite:///{db_path}"
    runner.wait_for_database(url, timeout=2, poll_interval=0.1)


def test_wait_for_database_times_out(monkeypatch) -> None:
    class DummyEngine:
        def connect(self) -> types.SimpleNamespace:
            raise runner.OperationalError("SELECT 1", {}, Exception("boom"))

        def dispose(self) -> None:
            pass

    monkeypatch.setattr(runner, "create_engine", lambda *_, **__: DummyEngine())
    with pytest.raises(RuntimeError):
        runner.wait_for_database("postgresql://example", timeout=0, poll_interval=0)


def test_upgrade_creates_progression_schema(database_url: str) -> None:
    config = _config()
    assert runner.pending_migrations(config)

    runner.run_migrations("head", timeout=5, poll_interval=0.1, config=config)

    engine = create_engine(database_url)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert {
        "player_progress",
        "exercise_proficiencies",
        "research_upgrades",
        "adventure_attempts",
        "daily_purchases",
        "progression_events",
    } <= tables
    assert runner.current_revision(database_url) == runner.head_revision(config)
    assert not runner.pending_migrations(config)


def test_check_flag_reports_pending_revisions(database_url: str) -> None:
    assert runner.main(["--check"]) == 2
    assert runner.main(["--timeout", "5", "--poll-interval", "0.1"]) == 0
    assert runner.main(["--check"]) == 0
