"""User input handling for starting a countdown."""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from deadline_coach.core.settings import settings


class DayCountError(ValueError):
    """The submitted day count is not acceptable; ``str(exc)`` is user-facing."""


def parse_day_count(
    raw: str | int | None,
    *,
    min_days: int | None = None,
    max_days: int | None = None,
) -> int:
    """Validate a user-entered day count and return it as an int.

    Raises:
        DayCountError: If the value is missing, not a whole number, or outside
            the configured range.
    """
    lower = settings.min_days if min_days is None else min_days
    upper = settings.max_days if max_days is None else max_days

    if raw is None or isinstance(raw, bool):
        raise DayCountError("Please enter a valid number of days (e.g., 75).")
    try:
        days = int(str(raw).strip())
    except ValueError:
        raise DayCountError("Please enter a valid number of days (e.g., 75).") from None

    if days < lower:
        raise DayCountError("Please enter a valid number of days (e.g., 75).")
    if days > upper:
        raise DayCountError(
            f"Please enter a number less than {upper} days to ensure relevance."
        )
    return days


def deadline_for_days(
    days: int,
    now_ms: int,
    *,
    hour: int | None = None,
    timezone: str | None = None,
) -> int:
    """Return the deadline ``days`` calendar days after ``now_ms`` at ``hour``:00.

    Local wall-clock time is used: the configured timezone if one is set,
    otherwise the system timezone.
    """
    hour = settings.deadline_hour if hour is None else hour
    tz_name = settings.deadline_timezone if timezone is None else timezone
    tz = ZoneInfo(tz_name) if tz_name else None

    now = datetime.fromtimestamp(now_ms / 1000, tz=tz)
    target = (now + timedelta(days=days)).replace(hour=hour, minute=0, second=0, microsecond=0)
    return int(target.timestamp() * 1000)
