# src/deadline_coach/schemas/countdown.py
"""Countdown-related Pydantic schemas."""

from pydantic import BaseModel, Field

from deadline_coach.core.settings import settings
from deadline_coach.services.controller import CountdownSnapshot


class CountdownStart(BaseModel):
    """Schema for starting a new countdown."""

    days: int = Field(
        ...,
        ge=settings.min_days,
        le=settings.max_days,
        description="Whole days until the deadline",
    )


class RemainingTimeResponse(BaseModel):
    """Time left until the deadline."""

    days: int
    hours: int
    minutes: int
    seconds: int


class ContentResponse(BaseModel):
    """Coaching text currently shown to the user."""

    message: str
    tip: str
    loading: bool


class CountdownResponse(BaseModel):
    """Schema for countdown state returned by the API."""

    state: str
    headline: str
    deadline_ms: int | None
    remaining: RemainingTimeResponse
    content: ContentResponse
    error: str | None = None

    @classmethod
    def from_snapshot(cls, snapshot: CountdownSnapshot) -> "CountdownResponse":
        return cls(
            state=snapshot.state.value,
            headline=snapshot.headline,
            deadline_ms=snapshot.deadline_ms,
            remaining=RemainingTimeResponse(**snapshot.remaining.as_dict()),
            content=ContentResponse(
                message=snapshot.content.message,
                tip=snapshot.content.tip,
                loading=snapshot.loading,
            ),
            error=snapshot.error,
        )
