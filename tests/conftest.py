"""Shared fixtures for the planner test suite."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from packages.planner.service import (
    PlannerDatabase,
    PlannerSettings,
    WorkspaceResolver,
    init_engine,
)
from packages.planner.storage import LocalAudioStorage

MEMORY_DB_URL = "sqlite+pysqlite:///:memory:"


class FrozenClock:
    """Callable clock that tests can move by hand."""

    def __init__(self, start: dt.datetime | None = None):
        self.now = start or dt.datetime(2024, 5, 1, 9, 0, tzinfo=dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **delta) -> dt.datetime:
        self.now = self.now + dt.timedelta(**delta)
        return self.now


@pytest.fixture()
def database():
    settings = PlannerSettings(database_url=MEMORY_DB_URL)
    db = PlannerDatabase(init_engine(settings))
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def workspace(session):
    return WorkspaceResolver(session).resolve("owner@example.com")


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def audio_storage(tmp_path: Path) -> LocalAudioStorage:
    return LocalAudioStorage(tmp_path / "uploads")
