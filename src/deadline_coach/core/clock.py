# src/deadline_coach/core/clock.py
"""Wall-clock helpers.

Everything that needs "now" takes a ``Clock`` so tests can pin time.
"""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], int]


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def now_millis() -> int:
    """Return the current time in milliseconds since the epoch."""
    return int(utcnow().timestamp() * 1000)
