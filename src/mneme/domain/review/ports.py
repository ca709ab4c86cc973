"""
Ports (interfaces) for the review engine's collaborators.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import CardState, DailyStatsDelta, DailyStatsRecord, Rating


class Scheduler(ABC):
    """
    Port for the memory-model scheduling function.

    Implementations:
        - FsrsScheduler: Delegates to the `fsrs` library.
    """

    @abstractmethod
    def schedule(self, card: CardState, rating: Rating, now: datetime) -> CardState:
        """
        Compute the card's next scheduling state.

        Must be deterministic for identical inputs and must not mutate `card`.

        Args:
            card: Current scheduling state.
            rating: The grade given by the user.
            now: Time of the grading.

        Returns:
            A CardState carrying the new scheduling fields.
        """
        pass


class CardRepository(ABC):
    """
    Port for card storage.

    Implementations:
        - InMemoryCardRepository: Dict-backed store.
        - YamlCardRepository: Cards kept in a YAML file.
    """

    @abstractmethod
    async def get(self, card_id: str) -> CardState | None:
        pass

    @abstractmethod
    async def set(self, card: CardState) -> None:
        pass

    @abstractmethod
    async def get_all(self) -> list[CardState]:
        pass


class DailyStatsRepository(ABC):
    """
    Port for per-day review counters keyed by date (YYYY-MM-DD).

    Implementations:
        - InMemoryDailyStatsRepository: Dict-backed store.
    """

    @abstractmethod
    async def increment(self, date_key: str, delta: DailyStatsDelta) -> None:
        """Add every counter of `delta` to the record for `date_key`."""
        pass

    @abstractmethod
    async def decrement(self, date_key: str, delta: DailyStatsDelta) -> None:
        """Subtract every counter of `delta`, flooring each counter at 0."""
        pass

    @abstractmethod
    async def get(self, date_key: str) -> DailyStatsRecord | None:
        pass

    @abstractmethod
    async def get_all(self) -> dict[str, DailyStatsRecord]:
        pass

    @abstractmethod
    async def record_reviewed_card(self, date_key: str, card_id: str) -> None:
        pass

    @abstractmethod
    async def get_reviewed_card_ids(self, date_key: str) -> set[str]:
        pass
