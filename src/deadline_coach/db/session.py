"""Engine and session factory for the deadline database.

Sessions are opened from worker threads (see ``DeadlineStore``), so SQLite
connections must not be pinned to the thread that created them.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from deadline_coach.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the countdown tables."""


# Models register themselves on Base.metadata at import time.
import deadline_coach.models  # noqa: E402,F401


def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.sql_debug}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
    return options


engine = create_engine(
    settings.effective_database_url,
    **_engine_options(settings.effective_database_url),
)

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def create_tables() -> None:
    """Create the countdown tables if they do not exist yet."""
    Base.metadata.create_all(bind=engine)
