"""Remaining-time arithmetic for the countdown."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

MS_PER_SECOND: Final[int] = 1000
MS_PER_MINUTE: Final[int] = 60 * MS_PER_SECOND
MS_PER_HOUR: Final[int] = 60 * MS_PER_MINUTE
MS_PER_DAY: Final[int] = 24 * MS_PER_HOUR


@dataclass(frozen=True)
class RemainingTime:
    """Floor breakdown of the time left until a deadline."""

    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    # Milliseconds below one second, kept so a sub-second remainder is not "zero"
    sub_second_ms: int = field(default=0, repr=False)

    @property
    def is_zero(self) -> bool:
        """True only once the deadline has passed."""
        return not (self.days or self.hours or self.minutes or self.seconds or self.sub_second_ms)

    @property
    def is_deadline_day(self) -> bool:
        """True once less than a full day is left but the deadline has not passed."""
        return self.days == 0 and not self.is_zero

    def as_dict(self) -> dict[str, int]:
        return {
            "days": self.days,
            "hours": self.hours,
            "minutes": self.minutes,
            "seconds": self.seconds,
        }


ZERO_REMAINING: Final[RemainingTime] = RemainingTime()


def calculate_remaining(deadline_ms: int, now_ms: int) -> RemainingTime:
    """Return the time left until ``deadline_ms``, clamped at zero.

    Each field holds what is left after the larger units are taken out, so
    ``hours < 24``, ``minutes < 60`` and ``seconds < 60`` always hold.
    Sub-second remainders are floored out of the displayed fields but still
    keep the result from counting as zero.
    """
    difference = deadline_ms - now_ms
    if difference <= 0:
        return ZERO_REMAINING

    return RemainingTime(
        days=difference // MS_PER_DAY,
        hours=(difference % MS_PER_DAY) // MS_PER_HOUR,
        minutes=(difference % MS_PER_HOUR) // MS_PER_MINUTE,
        seconds=(difference % MS_PER_MINUTE) // MS_PER_SECOND,
        sub_second_ms=difference % MS_PER_SECOND,
    )
