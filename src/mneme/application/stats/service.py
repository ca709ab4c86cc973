"""
Review Stats Service — Application layer orchestrator.

Keeps the per-day counters in the DailyStatsRepository in step with gradings
and derives streaks and today's summary from them.
"""

import logging
from datetime import date, datetime

from mneme.application.day_boundary import DayBoundary
from mneme.domain.review.models import (
    DailyStatsDelta,
    DailyStatsRecord,
    Rating,
    ReviewResult,
    State,
    StreakInfo,
    TodaySummary,
)
from mneme.domain.review.ports import DailyStatsRepository

from .aggregator import streak_from_days

logger = logging.getLogger(__name__)


class ReviewStatsService:
    """
    Application service for recording and reading daily review counters.

    Depends on the DailyStatsRepository abstraction, not a concrete store.
    """

    def __init__(
        self,
        stats_repo: DailyStatsRepository,
        day_boundary: DayBoundary | None = None,
    ):
        """
        Args:
            stats_repo: The repository (port) holding daily counters.
            day_boundary: Decides which day a review belongs to; defaults to 4 AM.
        """
        self._repo = stats_repo
        self._days = day_boundary or DayBoundary()

    @property
    def day_boundary(self) -> DayBoundary:
        return self._days

    def build_delta(self, result: ReviewResult) -> DailyStatsDelta:
        """Counters contributed by a single review."""
        return DailyStatsDelta(
            date=self._days.today_key(result.timestamp),
            reviews_completed=1,
            new_cards_studied=1 if result.previous_state == State.NEW else 0,
            total_time_ms=result.response_time_ms,
            again=1 if result.rating == Rating.AGAIN else 0,
            hard=1 if result.rating == Rating.HARD else 0,
            good=1 if result.rating == Rating.GOOD else 0,
            easy=1 if result.rating == Rating.EASY else 0,
            new_cards=1 if result.previous_state == State.NEW else 0,
            learning_cards=1 if result.previous_state.is_learning else 0,
            review_cards=1 if result.previous_state == State.REVIEW else 0,
        )

    async def record_review(self, result: ReviewResult) -> None:
        """Add one review to the counters of the day it happened on."""
        delta = self.build_delta(result)
        await self._repo.record_reviewed_card(delta.date, result.card_id)
        await self._repo.increment(delta.date, delta)
        logger.debug(f"Recorded review of {result.card_id} on {delta.date}")

    async def undo_review(self, result: ReviewResult) -> None:
        """
        Remove one review from the counters.

        The card stays in the day's reviewed set: it may have been graded
        more than once, and undo only reverts the rating.
        """
        delta = self.build_delta(result)
        await self._repo.decrement(delta.date, delta)
        logger.info(f"Undid review of {result.card_id} on {delta.date}")

    async def today_record(self, now: datetime) -> DailyStatsRecord:
        key = self._days.today_key(now)
        record = await self._repo.get(key)
        return record or DailyStatsRecord(date=key)

    async def reviewed_today(self, now: datetime) -> set[str]:
        return await self._repo.get_reviewed_card_ids(self._days.today_key(now))

    async def get_streak_info(self, now: datetime) -> StreakInfo:
        """Streaks over stored days with at least one completed review."""
        records = await self._repo.get_all()
        days = []
        for key, record in records.items():
            if record.reviews_completed <= 0:
                continue
            try:
                days.append(date.fromisoformat(key))
            except ValueError:
                raise ValueError(f"malformed daily stats key {key!r}") from None
        return streak_from_days(days, self._days.study_date(now))

    async def get_today_summary(self, now: datetime) -> TodaySummary:
        record = await self.today_record(now)
        total_ratings = record.again + record.hard + record.good + record.easy
        correct = record.good + record.easy

        return TodaySummary(
            studied=record.reviews_completed,
            minutes=round(record.total_time_ms / 60000),
            new_cards=record.new_cards_studied,
            review_cards=record.review_cards,
            again=record.again,
            correct_rate=correct / total_ratings if total_ratings > 0 else 0.0,
        )
