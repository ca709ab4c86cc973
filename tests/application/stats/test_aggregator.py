from datetime import date, datetime, timedelta, timezone

import pytest

from mneme.application.day_boundary import DayBoundary
from mneme.application.stats.aggregator import (
    calculate_daily_stats,
    calculate_retention_rate,
    calculate_session_stats,
    card_maturity_breakdown,
    get_streak_info,
    streak_from_days,
)
from mneme.domain.review.models import Rating, ReviewResult, State

UTC = timezone.utc


def result(card_id="c1", rating=Rating.GOOD, timestamp=None, previous_state=State.REVIEW, ms=1000):
    return ReviewResult(
        card_id=card_id,
        rating=rating,
        timestamp=timestamp or datetime(2024, 1, 10, 12, 0, tzinfo=UTC),
        response_time_ms=ms,
        previous_state=previous_state,
        scheduled_days_before_grading=0,
        elapsed_days_since_last_review=0,
    )


def at(day: int, hour: int = 12) -> datetime:
    return datetime(2024, 1, day, hour, 0, tzinfo=UTC)


class TestSessionStats:
    def test_counts_ratings_and_previous_states(self, now):
        results = [
            result("a", Rating.AGAIN, previous_state=State.NEW),
            result("b", Rating.GOOD, previous_state=State.REVIEW),
            result("a", Rating.GOOD, previous_state=State.LEARNING),
            result("c", Rating.EASY, previous_state=State.RELEARNING),
        ]

        stats = calculate_session_stats(results, 3, now - timedelta(minutes=7), now)

        assert stats.total == 3
        assert stats.reviewed == 4
        assert (stats.again, stats.hard, stats.good, stats.easy) == (1, 0, 2, 1)
        assert stats.new_cards == 1
        assert stats.learning_cards == 2
        assert stats.review_cards == 1
        assert stats.duration == timedelta(minutes=7)

    def test_empty_session(self, now):
        stats = calculate_session_stats([], 0, now, now)
        assert stats.reviewed == 0
        assert stats.duration == timedelta(0)


class TestDailyStats:
    def test_counts(self, make_card, now):
        cards = [
            make_card("n1"),
            make_card("r1", State.REVIEW, now - timedelta(days=1)),
            make_card("r2", State.REVIEW, now + timedelta(hours=6)),
            make_card("r3", State.REVIEW, now + timedelta(days=3)),
        ]
        today = [
            result("n0", previous_state=State.NEW),
            result("x", previous_state=State.REVIEW),
        ]

        stats = calculate_daily_stats(cards, today, 5, now)

        assert stats.date == "2024-01-10"
        assert stats.new_reviewed == 1
        assert stats.reviews_completed == 2
        assert stats.due_today == 2
        assert stats.new_remaining == 4

    def test_new_remaining_floors_at_zero(self, now):
        today = [result(f"n{i}", previous_state=State.NEW) for i in range(4)]

        assert calculate_daily_stats([], today, 2, now).new_remaining == 0

    def test_due_today_counts_inactive_cards(self, make_card, now):
        # Suspended and buried cards still count as due; the queue skips them.
        cards = [
            make_card("suspended", State.REVIEW, now - timedelta(days=1), suspended=True),
            make_card(
                "buried",
                State.REVIEW,
                now - timedelta(days=1),
                buried_until=now + timedelta(days=1),
            ),
        ]

        assert calculate_daily_stats(cards, [], 20, now).due_today == 2

    def test_uses_day_boundary(self, make_card):
        now = datetime(2024, 1, 10, 2, 0, tzinfo=UTC)

        stats = calculate_daily_stats([], [], 20, now, DayBoundary(day_start_hour=4))

        assert stats.date == "2024-01-09"

    def test_negative_limit_rejected(self, now):
        with pytest.raises(ValueError, match="daily_new_limit"):
            calculate_daily_stats([], [], -1, now)


class TestRetention:
    def test_good_and_easy_count_as_success(self):
        results = [
            result(rating=Rating.AGAIN),
            result(rating=Rating.HARD),
            result(rating=Rating.GOOD),
            result(rating=Rating.EASY),
        ]
        assert calculate_retention_rate(results) == 0.5

    def test_no_reviews(self):
        assert calculate_retention_rate([]) == 0.0


class TestStreaks:
    def test_gap_breaks_current_streak(self):
        results = [result(timestamp=at(d)) for d in (1, 2, 3, 10)]

        streak = get_streak_info(results, date(2024, 1, 10))

        assert streak.current_streak == 1
        assert streak.longest_streak == 3

    def test_streak_ending_yesterday_is_current(self):
        results = [result(timestamp=at(d)) for d in (7, 8, 9)]

        streak = get_streak_info(results, date(2024, 1, 10))

        assert streak.current_streak == 3
        assert streak.longest_streak == 3

    def test_old_reviews_have_no_current_streak(self):
        results = [result(timestamp=at(d)) for d in (1, 2)]

        streak = get_streak_info(results, date(2024, 1, 10))

        assert streak.current_streak == 0
        assert streak.longest_streak == 2

    def test_multiple_reviews_same_day_count_once(self):
        results = [result(timestamp=at(10, h)) for h in (8, 9, 20)]

        streak = get_streak_info(results, date(2024, 1, 10))

        assert streak.current_streak == 1
        assert streak.longest_streak == 1

    def test_no_history(self):
        streak = get_streak_info([], date(2024, 1, 10))
        assert (streak.current_streak, streak.longest_streak) == (0, 0)

    def test_zone_decides_the_day(self):
        tokyo = timezone(timedelta(hours=9))
        # 2024-01-09 20:00 UTC is already the 10th in Tokyo
        results = [result(timestamp=at(9, 20))]

        assert get_streak_info(results, date(2024, 1, 11), tokyo).current_streak == 1
        assert get_streak_info(results, date(2024, 1, 11)).current_streak == 0

    def test_malformed_timestamp(self):
        bad = result(timestamp="2024-01-10")  # type: ignore[arg-type]

        with pytest.raises(ValueError, match="malformed timestamp"):
            get_streak_info([bad], date(2024, 1, 10))

    def test_review_day_after_today_keeps_current_streak(self):
        # Clock skew can leave a review on a later calendar day
        days = [date(2024, 1, 9), date(2024, 1, 10), date(2024, 1, 11)]

        streak = streak_from_days(days, date(2024, 1, 10))

        assert streak.current_streak == 2
        assert streak.longest_streak == 3

    def test_streak_from_unsorted_days(self):
        days = [date(2024, 1, 10), date(2024, 1, 8), date(2024, 1, 9), date(2024, 1, 9)]

        streak = streak_from_days(days, date(2024, 1, 10))

        assert (streak.current_streak, streak.longest_streak) == (3, 3)


class TestMaturity:
    def test_breakdown(self, make_card, now):
        cards = [
            make_card("new"),
            make_card("learning", State.LEARNING, now),
            make_card("relearning", State.RELEARNING, now),
            make_card("young", State.REVIEW, now, scheduled_days=20),
            make_card("mature", State.REVIEW, now, scheduled_days=21),
            make_card("suspended", State.REVIEW, now, suspended=True),
            make_card("buried", buried_until=now + timedelta(hours=1)),
            make_card(
                "both", State.REVIEW, now, suspended=True, buried_until=now + timedelta(hours=1)
            ),
        ]

        breakdown = card_maturity_breakdown(cards, now)

        assert breakdown.new == 1
        assert breakdown.learning == 2
        assert breakdown.young == 1
        assert breakdown.mature == 1
        assert breakdown.suspended == 2
        assert breakdown.buried == 1
