"""
In-memory repositories.

Used by tests and by callers that keep the card set in process.
"""

from dataclasses import replace

from mneme.domain.review.models import (
    COUNTER_FIELDS,
    CardState,
    DailyStatsDelta,
    DailyStatsRecord,
)
from mneme.domain.review.ports import CardRepository, DailyStatsRepository


class InMemoryCardRepository(CardRepository):
    """Dict-backed card store that preserves insertion order."""

    def __init__(self, cards: list[CardState] | None = None):
        self._cards: dict[str, CardState] = {card.id: card for card in cards or []}

    async def get(self, card_id: str) -> CardState | None:
        return self._cards.get(card_id)

    async def set(self, card: CardState) -> None:
        self._cards[card.id] = card

    async def get_all(self) -> list[CardState]:
        return list(self._cards.values())


class InMemoryDailyStatsRepository(DailyStatsRepository):
    """Dict-backed daily counters keyed by YYYY-MM-DD."""

    def __init__(self):
        self._days: dict[str, DailyStatsRecord] = {}

    def _record(self, date_key: str) -> DailyStatsRecord:
        if date_key not in self._days:
            self._days[date_key] = DailyStatsRecord(date=date_key)
        return self._days[date_key]

    async def increment(self, date_key: str, delta: DailyStatsDelta) -> None:
        record = self._record(date_key)
        for name in COUNTER_FIELDS:
            setattr(record, name, getattr(record, name) + getattr(delta, name))

    async def decrement(self, date_key: str, delta: DailyStatsDelta) -> None:
        record = self._record(date_key)
        for name in COUNTER_FIELDS:
            setattr(record, name, max(0, getattr(record, name) - getattr(delta, name)))

    async def get(self, date_key: str) -> DailyStatsRecord | None:
        record = self._days.get(date_key)
        if record is None:
            return None
        return replace(record, reviewed_card_ids=set(record.reviewed_card_ids))

    async def get_all(self) -> dict[str, DailyStatsRecord]:
        return {
            key: replace(record, reviewed_card_ids=set(record.reviewed_card_ids))
            for key, record in self._days.items()
        }

    async def record_reviewed_card(self, date_key: str, card_id: str) -> None:
        self._record(date_key).reviewed_card_ids.add(card_id)

    async def get_reviewed_card_ids(self, date_key: str) -> set[str]:
        record = self._days.get(date_key)
        return set(record.reviewed_card_ids) if record else set()
