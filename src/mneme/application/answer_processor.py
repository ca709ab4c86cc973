"""
Answer processing: applies one grading to one card.

This is a pure orchestration step. The scheduling math lives behind the
Scheduler port; persistence is the caller's job.
"""

import math
from dataclasses import replace
from datetime import datetime
from typing import NamedTuple

from mneme.domain.constants import SECONDS_PER_DAY
from mneme.domain.review.models import CardState, Rating, ReviewResult
from mneme.domain.review.ports import Scheduler


class AnswerOutcome(NamedTuple):
    updated_card: CardState
    result: ReviewResult


def validate_rating(rating: object) -> Rating:
    """
    Convert a raw grade to a Rating, rejecting anything outside 1..4.

    Booleans and floats are rejected even though they compare equal to ints.
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError(f"rating must be an integer between 1 and 4, got {rating!r}")
    try:
        return Rating(rating)
    except ValueError:
        raise ValueError(f"rating must be between 1 and 4, got {rating}") from None


def elapsed_days(last_review: datetime | None, now: datetime) -> int:
    """
    Whole days between the last review and now.

    0 when the card was never reviewed; never negative under clock skew.
    """
    if last_review is None:
        return 0
    seconds = (now - last_review).total_seconds()
    return max(0, math.floor(seconds / SECONDS_PER_DAY))


def process_answer(
    card: CardState,
    rating: Rating | int,
    scheduler: Scheduler,
    response_time_ms: int,
    now: datetime,
) -> AnswerOutcome:
    """
    Grade a card and return its updated state plus the review record.

    Args:
        card: The card being graded. Not modified.
        rating: Grade 1..4 (Again, Hard, Good, Easy).
        scheduler: Computes the next scheduling state.
        response_time_ms: Time the user took to answer.
        now: Time of the grading.

    Returns:
        AnswerOutcome(updated_card, result).

    Raises:
        ValueError: If the rating is outside 1..4 or the response time is negative.
    """
    grade = validate_rating(rating)
    if response_time_ms < 0:
        raise ValueError(f"response_time_ms must be >= 0, got {response_time_ms}")

    scheduled = scheduler.schedule(card, grade, now)

    # Only scheduling fields come from the scheduler
    updated_card = replace(
        card,
        state=scheduled.state,
        due=scheduled.due,
        stability=scheduled.stability,
        difficulty=scheduled.difficulty,
        reps=scheduled.reps,
        lapses=scheduled.lapses,
        scheduled_days=scheduled.scheduled_days,
        learning_step=scheduled.learning_step,
        last_review=scheduled.last_review,
    )

    result = ReviewResult(
        card_id=card.id,
        rating=grade,
        timestamp=now,
        response_time_ms=response_time_ms,
        previous_state=card.state,
        scheduled_days_before_grading=card.scheduled_days,
        elapsed_days_since_last_review=elapsed_days(card.last_review, now),
    )

    return AnswerOutcome(updated_card, result)
