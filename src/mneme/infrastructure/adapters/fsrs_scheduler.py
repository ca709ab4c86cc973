"""
FSRS Scheduler — Infrastructure adapter for the `fsrs` library.

Implements the Scheduler port by translating CardState to and from
`fsrs.Card`. The library has no "new" state: a new card is a learning card
on step 0 without a memory state.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import fsrs

from mneme.domain.constants import DEFAULT_DESIRED_RETENTION
from mneme.domain.review.models import CardState, Rating, State
from mneme.domain.review.ports import Scheduler


class FsrsScheduler(Scheduler):
    """
    Schedules cards with FSRS.

    Fuzzing is off by default so identical inputs give identical outputs.
    """

    def __init__(
        self,
        desired_retention: float = DEFAULT_DESIRED_RETENTION,
        learning_steps: tuple[timedelta, ...] | None = None,
        relearning_steps: tuple[timedelta, ...] | None = None,
        enable_fuzzing: bool = False,
    ):
        kwargs: dict = {
            "desired_retention": desired_retention,
            "enable_fuzzing": enable_fuzzing,
        }
        if learning_steps is not None:
            kwargs["learning_steps"] = learning_steps
        if relearning_steps is not None:
            kwargs["relearning_steps"] = relearning_steps
        self._scheduler = fsrs.Scheduler(**kwargs)

    def schedule(self, card: CardState, rating: Rating, now: datetime) -> CardState:
        review_time = _to_utc(now)
        fsrs_card = self._to_fsrs_card(card)

        next_card, _ = self._scheduler.review_card(
            fsrs_card, fsrs.Rating(int(rating)), review_datetime=review_time
        )

        due = next_card.due
        lapsed = card.state == State.REVIEW and rating == Rating.AGAIN

        return replace(
            card,
            state=State(int(next_card.state)),
            due=_like(due, now),
            stability=float(next_card.stability),
            difficulty=float(next_card.difficulty),
            reps=card.reps + 1,
            lapses=card.lapses + (1 if lapsed else 0),
            scheduled_days=max(0, (due - review_time).days),
            learning_step=next_card.step or 0,
            last_review=now,
        )

    def _to_fsrs_card(self, card: CardState) -> fsrs.Card:
        if card.state == State.NEW:
            return fsrs.Card(
                card_id=0,
                state=fsrs.State.Learning,
                step=0,
                due=_to_utc(card.due),
            )

        # Learning cards stored before their first grading carry no memory state
        has_memory = card.stability > 0 or card.difficulty > 0
        step = card.learning_step if card.is_learning else None

        return fsrs.Card(
            card_id=0,
            state=fsrs.State(int(card.state)),
            step=step,
            stability=card.stability if has_memory else None,
            difficulty=card.difficulty if has_memory else None,
            due=_to_utc(card.due),
            last_review=_to_utc(card.last_review) if card.last_review else None,
        )


def _to_utc(ts: datetime) -> datetime:
    """fsrs requires aware UTC datetimes; naive values are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _like(ts: datetime, reference: datetime) -> datetime:
    """Express a UTC datetime in the same style (naive or zoned) as `reference`."""
    if reference.tzinfo is None:
        return ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts.astimezone(reference.tzinfo)
