"""Selection of the content requests sent to the generation service.

The countdown shows two pieces of text: a motivational message and a practical
study tip. Which requests are submitted depends on how far away the deadline
is. Buckets are exclusive and evaluated in a fixed precedence order, so every
``(days_remaining, is_today)`` pair maps to exactly one bucket.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

FINAL_STRETCH_MAX_DAYS: Final[int] = 7
SHORT_HORIZON_MAX_DAYS: Final[int] = 30
MID_HORIZON_MAX_DAYS: Final[int] = 50

DEADLINE_DAY_MESSAGE: Final[str] = (
    "🎉 Congratulations! Your exam day has arrived. "
    "You've prepared well - now go show what you know!"
)
DEADLINE_DAY_TIP: Final[str] = "Take a deep breath and trust your knowledge. You've got this!"

NOT_STARTED_MESSAGE: Final[str] = (
    "Enter days to start your exam countdown and get personalized motivation!"
)
NOT_STARTED_TIP: Final[str] = (
    "Enter days to start your exam countdown and get personalized study tips!"
)


class ContentBucket(Enum):
    """Horizon buckets, listed in precedence order."""

    DEADLINE_DAY = "deadline_day"
    FINAL_DAY = "final_day"
    LONG_HORIZON = "long_horizon"
    MID_HORIZON = "mid_horizon"
    SHORT_HORIZON = "short_horizon"
    FINAL_STRETCH = "final_stretch"
    NOT_STARTED = "not_started"


# Buckets whose text is shown as-is and never sent to the generation service.
FIXED_BUCKETS: Final[frozenset[ContentBucket]] = frozenset(
    {ContentBucket.DEADLINE_DAY, ContentBucket.NOT_STARTED}
)


@dataclass(frozen=True)
class ContentRequestPair:
    """The message request and the tip request for a single bucket.

    For fixed buckets the two strings are the display text itself.
    """

    bucket: ContentBucket
    message_request: str
    tip_request: str

    @property
    def is_fixed(self) -> bool:
        return self.bucket in FIXED_BUCKETS


def classify(days_remaining: int, is_today: bool) -> ContentBucket:
    """Return the bucket for the given horizon."""
    if days_remaining < 0:
        raise ValueError(f"days_remaining must be non-negative, got {days_remaining}")

    if is_today:
        return ContentBucket.DEADLINE_DAY
    if days_remaining == 1:
        return ContentBucket.FINAL_DAY
    if days_remaining > MID_HORIZON_MAX_DAYS:
        return ContentBucket.LONG_HORIZON
    if days_remaining > SHORT_HORIZON_MAX_DAYS:
        return ContentBucket.MID_HORIZON
    if days_remaining > FINAL_STRETCH_MAX_DAYS:
        return ContentBucket.SHORT_HORIZON
    if days_remaining > 0:
        return ContentBucket.FINAL_STRETCH
    return ContentBucket.NOT_STARTED


def select_content_requests(days_remaining: int, is_today: bool) -> ContentRequestPair:
    """Return the request pair for ``days_remaining``.

    Args:
        days_remaining: Whole days left until the deadline.
        is_today: The deadline's day has arrived but time still remains.

    Returns:
        A ``ContentRequestPair``; ``is_fixed`` pairs must not be submitted.

    Raises:
        ValueError: If ``days_remaining`` is negative.
    """
    bucket = classify(days_remaining, is_today)
    n = days_remaining

    if bucket is ContentBucket.DEADLINE_DAY:
        return ContentRequestPair(bucket, DEADLINE_DAY_MESSAGE, DEADLINE_DAY_TIP)

    if bucket is ContentBucket.FINAL_DAY:
        return ContentRequestPair(
            bucket,
            "Provide a calming, final motivational message (1-2 sentences) for someone "
            "whose exam is tomorrow. Emphasize self-care and trust in their preparation.",
            "Provide a crucial last-minute study tip (1-2 sentences) for someone whose "
            "exam is tomorrow, focusing on what NOT to do or a simple quick review method.",
        )

    if bucket is ContentBucket.LONG_HORIZON:
        return ContentRequestPair(
            bucket,
            f"Provide a motivating message (1-2 sentences) for someone with {n} days until "
            "their exam, focusing on consistent, long-term preparation and avoiding burnout.",
            f"Provide a study tip (1-2 sentences) for someone with {n} days until their exam, "
            "focusing on setting clear, achievable milestones and starting early.",
        )

    if bucket is ContentBucket.MID_HORIZON:
        return ContentRequestPair(
            bucket,
            "Provide a concise, encouraging motivational message (1-2 sentences) for someone "
            f"with {n} days until a major exam, emphasizing consistent effort and building "
            "a solid foundation.",
            f"Provide a practical study tip (1-2 sentences) for someone with {n} days until a "
            "major exam, focusing on effective planning, resource utilization, and regular review.",
        )

    if bucket is ContentBucket.SHORT_HORIZON:
        return ContentRequestPair(
            bucket,
            "Provide a concise, focused motivational message (1-2 sentences) for someone "
            f"with {n} days until their exam, emphasizing perseverance in the mid-stage and "
            "tackling weak areas.",
            f"Provide a practical study tip (1-2 sentences) for someone with {n} days until "
            "their exam, focusing on active learning, practice questions, and understanding "
            "concepts.",
        )

    if bucket is ContentBucket.FINAL_STRETCH:
        return ContentRequestPair(
            bucket,
            "Provide a short, intense motivational message (1-2 sentences) for someone in the "
            f"final stretch, with {n} days until their exam. Boost their confidence for the "
            "last push.",
            f"Provide a practical study tip (1-2 sentences) for someone with {n} days until "
            "their exam, focusing on effective review strategies, mock exams, and managing "
            "stress.",
        )

    return ContentRequestPair(bucket, NOT_STARTED_MESSAGE, NOT_STARTED_TIP)
