"""Same-session requeue policy for learning cards."""

from collections.abc import Sequence
from datetime import datetime, timedelta

from mneme.domain.constants import REQUEUE_HORIZON
from mneme.domain.review.models import CardState


def should_requeue(
    card: CardState, now: datetime, horizon: timedelta = REQUEUE_HORIZON
) -> bool:
    """
    Decide whether a just-graded card comes back in the current session.

    Only learning/relearning cards due within `horizon` of now qualify.
    Graduated review cards wait for a later session.
    """
    if not card.is_learning:
        return False
    return card.due <= now + horizon


def requeue_position(queue: Sequence[CardState], card: CardState) -> int:
    """Index of the first queued card due strictly later than `card`, else the end."""
    for index, queued in enumerate(queue):
        if card.due < queued.due:
            return index
    return len(queue)


def requeue(queue: Sequence[CardState], card: CardState) -> list[CardState]:
    """Return a new queue with `card` inserted at its due-ordered position."""
    position = requeue_position(queue, card)
    return [*queue[:position], card, *queue[position:]]
