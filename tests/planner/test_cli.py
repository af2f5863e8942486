from __future__ import annotations

import datetime as dt
import json
import logging
from pathlib import Path

import pytest

structlog = pytest.importorskip("structlog")

from packages.planner.models import ItemStatus, Task
from packages.planner.service import PlannerDatabase, PlannerSettings, init_engine
from packages.planner_cli.commands import seed
from packages.planner_cli.runner import build_parser, configure_logging, main


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture()
def db_url(tmp_path: Path, monkeypatch) -> str:
    monkeypatch.setenv("PLANNER_ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.delenv("PLANNER_TASK_RETENTION_DAYS", raising=False)
    monkeypatch.chdir(tmp_path)
    return f"sqlite:///{tmp_path / 'planner.db'}"


def _titles(db_url: str) -> list[str]:
    database = PlannerDatabase(init_engine(PlannerSettings(database_url=db_url)))
    try:
        with database.session() as session:
            return sorted(task.title for task in session.query(Task).all())
    finally:
        database.dispose()


def test_parser_registers_known_commands() -> None:
    parser = build_parser()
    subparsers_action = parser._subparsers._group_actions[0]  # type: ignore[attr-defined]
    assert {"serve", "init-db", "purge-deleted", "seed"}.issubset(
        subparsers_action.choices.keys()
    )


def test_purge_parser_accepts_retention_override() -> None:
    args = build_parser().parse_args(["purge-deleted", "--retention-days", "7"])
    assert args.retention_days == 7


def test_init_db_and_seed_are_idempotent(db_url: str, capsys: pytest.CaptureFixture[str]) -> None:
    main(["--db-url", db_url, "init-db"])
    assert "Database ready" in capsys.readouterr().out

    main(["--db-url", db_url, "seed", "--email", "dev@example.com"])
    assert "Seeded 3 task(s) for dev@example.com" in capsys.readouterr().out

    main(["--db-url", db_url, "seed", "--email", "dev@example.com"])
    assert "Seeded 0 task(s)" in capsys.readouterr().out

    assert _titles(db_url) == sorted(title for title, _ in seed.SAMPLE_TASKS)


def test_purge_deleted_command(db_url: str, capsys: pytest.CaptureFixture[str]) -> None:
    main(["--db-url", db_url, "seed"])
    capsys.readouterr()

    database = PlannerDatabase(init_engine(PlannerSettings(database_url=db_url)))
    try:
        with database.session() as session:
            task = session.query(Task).filter_by(title="Build Today view UI").one()
            task.status = ItemStatus.DELETED
            task.deleted_at = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=40)
            session.commit()
    finally:
        database.dispose()

    main(["--db-url", db_url, "purge-deleted", "--retention-days", "60"])
    assert "Purged 0 task(s)" in capsys.readouterr().out

    main(["--db-url", db_url, "purge-deleted"])
    assert "Purged 1 task(s)" in capsys.readouterr().out
    assert "Build Today view UI" not in _titles(db_url)


def test_negative_retention_is_rejected(db_url: str) -> None:
    with pytest.raises(SystemExit):
        main(["--db-url", db_url, "purge-deleted", "--retention-days", "-1"])


def test_key_value_logs_lead_with_event(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("INFO")
    structlog.get_logger("planner.tests").info("task_created", task_id="t-1")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    assert line.startswith("timestamp=")
    assert line.index("level='info'") < line.index("event='task_created'") < line.index("logger=")
    assert "task_id='t-1'" in line


def test_json_logs_and_level_filtering(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("WARNING", "json")
    log = structlog.get_logger("planner.tests")
    log.info("task_updated", task_id="t-2")
    log.warning("purge_unauthorized")
    logging.getLogger("planner.stdlib").warning("Stored audio %s", "k")

    lines = capsys.readouterr().err.strip().splitlines()
    records = [json.loads(line) for line in lines]
    assert [r["event"] for r in records] == ["purge_unauthorized", "Stored audio k"]
    assert records[0]["level"] == "warning"
    assert records[0]["logger"] == "planner.tests"
    assert records[0]["timestamp"].endswith("Z")


def test_log_format_flag() -> None:
    args = build_parser().parse_args(["--log-format", "json", "init-db"])
    assert args.log_format == "json"
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--log-format", "xml", "init-db"])
