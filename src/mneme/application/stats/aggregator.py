"""
Aggregation of review results into session, daily, retention and streak stats.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta, tzinfo

from mneme.application.day_boundary import DayBoundary, local_date
from mneme.domain.constants import MATURE_INTERVAL_DAYS
from mneme.domain.review.models import (
    CardMaturityBreakdown,
    CardState,
    DailyStats,
    Rating,
    ReviewResult,
    SessionStats,
    State,
    StreakInfo,
)


def calculate_session_stats(
    results: Sequence[ReviewResult],
    total_queued: int,
    session_start: datetime,
    now: datetime,
) -> SessionStats:
    """
    Summarize a study session.

    Args:
        results: Review results recorded during the session.
        total_queued: Number of cards the session queue started with.
        session_start: When the session began.
        now: Reference time for the duration.
    """
    ratings = [r.rating for r in results]
    previous = [r.previous_state for r in results]

    return SessionStats(
        total=total_queued,
        reviewed=len(results),
        again=ratings.count(Rating.AGAIN),
        hard=ratings.count(Rating.HARD),
        good=ratings.count(Rating.GOOD),
        easy=ratings.count(Rating.EASY),
        new_cards=previous.count(State.NEW),
        learning_cards=sum(1 for s in previous if s.is_learning),
        review_cards=previous.count(State.REVIEW),
        duration=now - session_start,
    )


def calculate_daily_stats(
    all_cards: Iterable[CardState],
    today_results: Sequence[ReviewResult],
    daily_new_limit: int,
    now: datetime,
    day_boundary: DayBoundary | None = None,
) -> DailyStats:
    """
    Summarize today's progress.

    `due_today` counts every non-new card due before the end of the study day,
    including suspended and buried cards.

    Args:
        all_cards: Every stored card, not only the reviewed ones.
        today_results: Results recorded today.
        daily_new_limit: New cards allowed per day.
        now: Reference time.
        day_boundary: Where the study day starts. Defaults to midnight.
    """
    if daily_new_limit < 0:
        raise ValueError(f"daily_new_limit must be >= 0, got {daily_new_limit}")

    boundary = day_boundary or DayBoundary(day_start_hour=0)
    new_reviewed = sum(1 for r in today_results if r.previous_state == State.NEW)

    return DailyStats(
        date=boundary.today_key(now),
        new_reviewed=new_reviewed,
        reviews_completed=len(today_results),
        due_today=boundary.count_due_cards(all_cards, now),
        new_remaining=max(0, daily_new_limit - new_reviewed),
    )


def calculate_retention_rate(results: Sequence[ReviewResult]) -> float:
    """Share of reviews graded Good or Easy. 0.0 when there are no reviews."""
    if not results:
        return 0.0
    successful = sum(1 for r in results if r.rating >= Rating.GOOD)
    return successful / len(results)


def get_streak_info(
    results: Iterable[ReviewResult], today: date, tz: tzinfo | None = None
) -> StreakInfo:
    """
    Compute current and longest streaks of consecutive review days.

    Args:
        results: Review history.
        today: The caller's current calendar date.
        tz: Zone used to bucket timestamps into calendar days.

    Raises:
        ValueError: If a result carries a timestamp that is not a datetime.
    """
    days: set[date] = set()
    for result in results:
        if not isinstance(result.timestamp, datetime):
            raise ValueError(
                f"malformed timestamp {result.timestamp!r} on review of card {result.card_id}"
            )
        days.add(local_date(result.timestamp, tz))
    return streak_from_days(days, today)


def streak_from_days(days: Iterable[date], today: date) -> StreakInfo:
    """
    Walk distinct review days in order and measure runs of consecutive days.

    The current streak is the run ending today or yesterday; it drops to 0
    once the most recent review day is older than yesterday.
    """
    ordered = sorted(set(days))
    if not ordered:
        return StreakInfo(current_streak=0, longest_streak=0)

    yesterday = today - timedelta(days=1)
    longest = 0
    current = 0
    run = 0
    previous: date | None = None

    for day in ordered:
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        if day in (today, yesterday):
            current = run
        previous = day

    if ordered[-1] < yesterday:
        current = 0

    return StreakInfo(current_streak=current, longest_streak=longest)


def card_maturity_breakdown(cards: Iterable[CardState], now: datetime) -> CardMaturityBreakdown:
    """
    Count cards by maturity. Suspension takes precedence over burial.
    """
    new = learning = young = mature = suspended = buried = 0

    for card in cards:
        if card.suspended:
            suspended += 1
            continue
        if card.is_buried(now):
            buried += 1
            continue

        if card.state == State.NEW:
            new += 1
        elif card.is_learning:
            learning += 1
        elif card.scheduled_days < MATURE_INTERVAL_DAYS:
            young += 1
        else:
            mature += 1

    return CardMaturityBreakdown(
        new=new,
        learning=learning,
        young=young,
        mature=mature,
        suspended=suspended,
        buried=buried,
    )
