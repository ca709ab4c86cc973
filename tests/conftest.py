from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from mneme.domain.review.models import CardState, Rating, State
from mneme.domain.review.ports import Scheduler

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


class StubScheduler(Scheduler):
    """
    Deterministic scheduler for tests.

    Again -> (re)learning in 6 minutes, Hard -> learning in 10 minutes,
    Good -> review in 1 day, Easy -> review in 4 days.
    """

    def __init__(self):
        self.calls: list[tuple[CardState, Rating, datetime]] = []

    def schedule(self, card: CardState, rating: Rating, now: datetime) -> CardState:
        self.calls.append((card, rating, now))

        if rating == Rating.AGAIN:
            state = State.RELEARNING if card.state == State.REVIEW else State.LEARNING
            interval = timedelta(minutes=6)
        elif rating == Rating.HARD:
            state = State.RELEARNING if card.state == State.REVIEW else State.LEARNING
            interval = timedelta(minutes=10)
        elif rating == Rating.GOOD:
            state = State.REVIEW
            interval = timedelta(days=1)
        else:
            state = State.REVIEW
            interval = timedelta(days=4)

        lapsed = card.state == State.REVIEW and rating == Rating.AGAIN
        return replace(
            card,
            state=state,
            due=now + interval,
            stability=card.stability + float(rating),
            difficulty=5.0,
            reps=card.reps + 1,
            lapses=card.lapses + (1 if lapsed else 0),
            scheduled_days=interval.days,
            learning_step=1 if state.is_learning else 0,
            last_review=now,
        )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def stub_scheduler():
    return StubScheduler()


@pytest.fixture
def make_card():
    """Factory for cards with sensible defaults per state."""

    def _make(card_id: str, state: State = State.NEW, due: datetime | None = None, **kwargs):
        if state != State.NEW:
            kwargs.setdefault("reps", 1)
            kwargs.setdefault("last_review", NOW - timedelta(days=1))
            kwargs.setdefault("stability", 10.0)
            kwargs.setdefault("difficulty", 5.0)
        return CardState(id=card_id, state=state, due=due or NOW, **kwargs)

    return _make
