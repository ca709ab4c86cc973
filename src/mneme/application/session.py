"""In-memory state of one study session."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from mneme.application.answer_processor import AnswerOutcome, process_answer
from mneme.application.requeue import requeue, should_requeue
from mneme.application.stats.aggregator import calculate_session_stats
from mneme.domain.constants import REQUEUE_HORIZON
from mneme.domain.review.models import CardState, Rating, ReviewResult, SessionStats
from mneme.domain.review.ports import Scheduler


@dataclass
class StudySession:
    """
    Presents a built queue one card at a time.

    The head of `queue` is the current card. Answering it removes it and,
    for short-interval learning cards, splices it back in by due time.
    """

    queue: list[CardState]
    started_at: datetime
    results: list[ReviewResult] = field(default_factory=list)
    total_queued: int = field(init=False)

    def __post_init__(self):
        self.queue = list(self.queue)
        self.total_queued = len(self.queue)

    @property
    def current(self) -> CardState | None:
        return self.queue[0] if self.queue else None

    @property
    def remaining(self) -> int:
        return len(self.queue)

    @property
    def is_finished(self) -> bool:
        return not self.queue

    def answer(
        self,
        rating: Rating | int,
        scheduler: Scheduler,
        response_time_ms: int,
        now: datetime,
        requeue_horizon: timedelta = REQUEUE_HORIZON,
    ) -> AnswerOutcome:
        """
        Grade the current card and advance.

        Raises:
            ValueError: If the session has no card left, or the rating is invalid.
        """
        card = self.current
        if card is None:
            raise ValueError("no card left to answer in this session")

        outcome = process_answer(card, rating, scheduler, response_time_ms, now)

        rest = self.queue[1:]
        if should_requeue(outcome.updated_card, now, requeue_horizon):
            rest = requeue(rest, outcome.updated_card)
        self.queue = rest
        self.results.append(outcome.result)

        return outcome

    def stats(self, now: datetime) -> SessionStats:
        return calculate_session_stats(self.results, self.total_queued, self.started_at, now)
