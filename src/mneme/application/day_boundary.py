"""
Day boundary logic.

A study day starts at `day_start_hour` local time (4 AM by default), so a
session at 1 AM still counts towards the previous day.
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, tzinfo

from mneme.domain.constants import DEFAULT_DAY_START_HOUR
from mneme.domain.review.models import CardState, State


def local_date(ts: datetime, tz: tzinfo | None = None) -> date:
    """Calendar date of `ts` in `tz` (or in its own zone when tz is None)."""
    if tz is not None:
        ts = ts.astimezone(tz)
    return ts.date()


class DayBoundary:
    """
    Computes "today" for day-based scheduling and daily counters.

    Args:
        day_start_hour: Hour (0-23) when a new study day begins.
        tz: Zone used to read wall-clock time. None keeps each timestamp's own zone.
    """

    def __init__(self, day_start_hour: int = DEFAULT_DAY_START_HOUR, tz: tzinfo | None = None):
        if not 0 <= day_start_hour <= 23:
            raise ValueError(f"day_start_hour must be between 0 and 23, got {day_start_hour}")
        self.day_start_hour = day_start_hour
        self.tz = tz

    def study_date(self, now: datetime) -> date:
        """Calendar date of the study day containing `now`."""
        local = now.astimezone(self.tz) if self.tz is not None else now
        day = local.date()
        if local.hour < self.day_start_hour:
            day -= timedelta(days=1)
        return day

    def today_start(self, now: datetime) -> datetime:
        local = now.astimezone(self.tz) if self.tz is not None else now
        return datetime.combine(
            self.study_date(now), time(self.day_start_hour), tzinfo=local.tzinfo
        )

    def tomorrow_start(self, now: datetime) -> datetime:
        return self.today_start(now) + timedelta(days=1)

    def today_key(self, now: datetime) -> str:
        """YYYY-MM-DD key of the current study day."""
        return self.study_date(now).isoformat()

    def is_today(self, ts: datetime, now: datetime) -> bool:
        return self.today_start(now) <= ts < self.tomorrow_start(now)

    def is_due_today(self, card: CardState, now: datetime) -> bool:
        """Non-new cards due before the next study day begins."""
        if card.state == State.NEW:
            return False
        return card.due < self.tomorrow_start(now)

    def count_due_cards(self, cards: Iterable[CardState], now: datetime) -> int:
        return sum(1 for card in cards if self.is_due_today(card, now))
