# src/deadline_coach/models/deadline.py
"""Persisted countdown deadline."""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from deadline_coach.db.session import Base


class DeadlineRecord(Base):
    """The single live deadline for an identity.

    Presence of the row is the only queryable state; no history is kept.
    """

    __tablename__ = "countdown_deadline"

    identity: Mapped[str] = mapped_column(String(255), primary_key=True)
    deadline_timestamp_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    set_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
