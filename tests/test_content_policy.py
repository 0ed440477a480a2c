# tests/test_content_policy.py
import pytest

from deadline_coach.services.content_policy import (
    DEADLINE_DAY_MESSAGE,
    DEADLINE_DAY_TIP,
    NOT_STARTED_MESSAGE,
    ContentBucket,
    classify,
    select_content_requests,
)


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (365, ContentBucket.LONG_HORIZON),
        (51, ContentBucket.LONG_HORIZON),
        (50, ContentBucket.MID_HORIZON),
        (31, ContentBucket.MID_HORIZON),
        (30, ContentBucket.SHORT_HORIZON),
        (8, ContentBucket.SHORT_HORIZON),
        (7, ContentBucket.FINAL_STRETCH),
        (2, ContentBucket.FINAL_STRETCH),
        (1, ContentBucket.FINAL_DAY),
        (0, ContentBucket.NOT_STARTED),
    ],
)
def test_bucket_boundaries(days: int, expected: ContentBucket) -> None:
    assert classify(days, False) is expected


@pytest.mark.parametrize("days", [0, 1, 10, 60])
def test_is_today_takes_precedence(days: int) -> None:
    assert classify(days, True) is ContentBucket.DEADLINE_DAY


def test_negative_days_are_rejected() -> None:
    with pytest.raises(ValueError):
        classify(-1, False)
    with pytest.raises(ValueError):
        select_content_requests(-5, True)


def test_deadline_day_pair_is_fixed_text() -> None:
    pair = select_content_requests(0, True)
    assert pair.is_fixed
    assert (pair.message_request, pair.tip_request) == (DEADLINE_DAY_MESSAGE, DEADLINE_DAY_TIP)


def test_not_started_pair_is_fixed_text() -> None:
    pair = select_content_requests(0, False)
    assert pair.is_fixed
    assert pair.message_request == NOT_STARTED_MESSAGE


def test_generated_requests_mention_day_count() -> None:
    pair = select_content_requests(9, False)
    assert pair.bucket is ContentBucket.SHORT_HORIZON
    assert not pair.is_fixed
    assert "9 days" in pair.message_request
    assert "9 days" in pair.tip_request


def test_final_day_requests_mention_tomorrow() -> None:
    pair = select_content_requests(1, False)
    assert "tomorrow" in pair.message_request
    assert "tomorrow" in pair.tip_request
