# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from deadline_coach.db.session import Base
from deadline_coach.services.deadline_store import DeadlineStore
from deadline_coach.services.generation import ContentGenerationClient, GeneratedContent

TEST_DB_URL = "sqlite://"

# 2026-03-02 12:00 UTC, a fixed "now" for deterministic countdowns
NOW_MS = int(datetime(2026, 3, 2, 12, 0, tzinfo=UTC).timestamp() * 1000)

GENERATED = GeneratedContent("Keep going, you are closer every day.", "Review one topic per evening.")


class FakeClock:
    """Settable millisecond clock."""

    def __init__(self, now_ms: int = NOW_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[Callable[[], Session]]:
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    try:
        yield factory
    finally:
        with factory() as db:
            for table in reversed(Base.metadata.sorted_tables):
                db.execute(table.delete())
            db.commit()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def mock_store() -> AsyncMock:
    store = AsyncMock(spec=DeadlineStore)
    store.load.return_value = None
    return store


@pytest.fixture()
def mock_generator() -> AsyncMock:
    generator = AsyncMock(spec=ContentGenerationClient)
    generator.generate.return_value = GENERATED
    return generator
