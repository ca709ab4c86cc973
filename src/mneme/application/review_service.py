"""
Review Service — Application layer orchestrator.

Connects the pure scheduling core to storage: reads cards and today's
counters, builds queues, grades cards and keeps daily stats in step.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from mneme.application.answer_processor import AnswerOutcome, process_answer
from mneme.application.config import AppConfig
from mneme.application.day_boundary import DayBoundary
from mneme.application.queue_builder import build_queue
from mneme.application.session import StudySession
from mneme.application.stats.aggregator import calculate_daily_stats
from mneme.application.stats.service import ReviewStatsService
from mneme.domain.review.models import CardState, DailyStats, Rating, ReviewResult
from mneme.domain.review.ports import CardRepository, Scheduler

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Application service for running reviews against stored cards.

    Follows Dependency Inversion: depends on the repository and scheduler
    ports, not concrete adapters.
    """

    def __init__(
        self,
        card_repo: CardRepository,
        scheduler: Scheduler,
        stats_service: ReviewStatsService,
        config: AppConfig,
    ):
        self._cards = card_repo
        self._scheduler = scheduler
        self._stats = stats_service
        self._config = config

    @property
    def day_boundary(self) -> DayBoundary:
        return self._stats.day_boundary

    async def build_queue(self, now: datetime, deck: str | None = None) -> list[CardState]:
        """
        Build today's queue from storage.

        Cards already graded today and new cards already studied count
        against the configured daily limits.
        """
        all_cards = await self._cards.get_all()
        reviewed_today = await self._stats.reviewed_today(now)
        today = await self._stats.today_record(now)

        options = self._config.queue_options(
            already_reviewed_today=reviewed_today,
            new_cards_studied_today=today.new_cards_studied,
            deck=deck,
        )
        queue = build_queue(all_cards, options, now)

        logger.info(
            f"Built queue of {len(queue)} cards from {len(all_cards)} "
            f"({len(reviewed_today)} reviewed today, {today.new_cards_studied} new studied)"
        )
        return queue

    async def grade_card(
        self,
        card: CardState,
        rating: Rating | int,
        response_time_ms: int,
        now: datetime,
    ) -> AnswerOutcome:
        """Grade a card, persist the new state and record the review."""
        outcome = process_answer(card, rating, self._scheduler, response_time_ms, now)

        await self._cards.set(outcome.updated_card)
        await self._stats.record_review(outcome.result)

        logger.debug(
            f"Graded {card.id} as {outcome.result.rating.name}: "
            f"{card.state.name} -> {outcome.updated_card.state.name}, "
            f"due {outcome.updated_card.due.isoformat()}"
        )
        return outcome

    async def start_session(self, now: datetime, deck: str | None = None) -> StudySession:
        return StudySession(queue=await self.build_queue(now, deck=deck), started_at=now)

    async def answer_current(
        self,
        session: StudySession,
        rating: Rating | int,
        response_time_ms: int,
        now: datetime,
    ) -> AnswerOutcome:
        """
        Grade the session's current card and persist the result.

        Learning cards due within the configured requeue horizon come back
        later in the same session.
        """
        outcome = session.answer(
            rating, self._scheduler, response_time_ms, now, self._config.requeue_horizon
        )
        await self._cards.set(outcome.updated_card)
        await self._stats.record_review(outcome.result)
        return outcome

    async def undo_grade(self, previous_card: CardState, result: ReviewResult) -> None:
        """Restore the card as it was before grading and roll back the counters."""
        if previous_card.id != result.card_id:
            raise ValueError(
                f"cannot undo review of {result.card_id} with card {previous_card.id}"
            )
        await self._cards.set(previous_card)
        await self._stats.undo_review(result)

    async def daily_stats(
        self, now: datetime, today_results: Sequence[ReviewResult]
    ) -> DailyStats:
        all_cards = await self._cards.get_all()
        return calculate_daily_stats(
            all_cards,
            today_results,
            self._config.new_cards_per_day,
            now,
            day_boundary=self._stats.day_boundary,
        )
