"""Persistence of the countdown deadline, one record per identity."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from deadline_coach.core.clock import Clock, now_millis
from deadline_coach.db.session import SessionLocal
from deadline_coach.models import DeadlineRecord

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the persistence layer cannot complete an operation."""


class DeadlineStore:
    """Save, load and delete the deadline record keyed by an opaque identity.

    Session work is blocking, so every public method hands it to a worker
    thread and can be awaited from the event loop.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        *,
        clock: Clock = now_millis,
    ) -> None:
        self._session_factory = session_factory or SessionLocal
        self._clock = clock

    async def save(self, identity: str, deadline_ms: int) -> None:
        """Upsert the deadline for ``identity``, replacing any prior value."""
        await asyncio.to_thread(self._save, identity, int(deadline_ms))

    async def load(self, identity: str) -> int | None:
        """Return the stored deadline in epoch milliseconds, or None."""
        return await asyncio.to_thread(self._load, identity)

    async def delete(self, identity: str) -> None:
        """Remove the record for ``identity``; succeeds when there is none."""
        await asyncio.to_thread(self._delete, identity)

    def _save(self, identity: str, deadline_ms: int) -> None:
        with self._session_factory() as db:
            try:
                record = db.get(DeadlineRecord, identity)
                if record is None:
                    record = DeadlineRecord(identity=identity)
                    db.add(record)
                record.deadline_timestamp_ms = deadline_ms
                record.set_at_ms = self._clock()
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise StoreError(f"Failed to save deadline: {exc}") from exc
        logger.debug("Saved deadline %d for identity %s", deadline_ms, identity)

    def _load(self, identity: str) -> int | None:
        with self._session_factory() as db:
            try:
                record = db.get(DeadlineRecord, identity)
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to load deadline: {exc}") from exc
            return int(record.deadline_timestamp_ms) if record else None

    def _delete(self, identity: str) -> None:
        with self._session_factory() as db:
            try:
                record = db.get(DeadlineRecord, identity)
                if record is None:
                    return
                db.delete(record)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise StoreError(f"Failed to delete deadline: {exc}") from exc
        logger.debug("Deleted deadline for identity %s", identity)


def get_deadline_store() -> DeadlineStore:
    """Return a store bound to the application database."""
    return DeadlineStore()
