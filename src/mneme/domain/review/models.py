"""
Domain models for review scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Literal

from mneme.domain.constants import DEFAULT_DAY_START_HOUR, LEARN_AHEAD_MINUTES


class State(IntEnum):
    """Card lifecycle state. Values match the stored integer codes."""

    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3

    @property
    def is_learning(self) -> bool:
        return self in (State.LEARNING, State.RELEARNING)


class Rating(IntEnum):
    """Recall grade chosen by the user."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


@dataclass(frozen=True)
class CardState:
    """
    Scheduling record for a single flashcard.

    Attributes:
        id: Opaque unique card identifier.
        state: Lifecycle state (new, learning, review, relearning).
        due: Next scheduled presentation.
        stability: Memory-model stability (days). Opaque to the engine.
        difficulty: Memory-model difficulty. Opaque to the engine.
        reps: Number of gradings.
        lapses: Number of times a review card was forgotten.
        scheduled_days: Interval assigned at the last grading.
        learning_step: Index into the learning steps (learning states only).
        last_review: Previous grading time, or None if never graded.
        suspended: Excluded from queues until unsuspended.
        buried_until: Excluded from queues while now < buried_until.
        deck: Optional deck tag used for queue filtering.

    A NEW card has reps == 0 and last_review None.
    """

    id: str
    state: State
    due: datetime
    stability: float = 0.0
    difficulty: float = 0.0
    reps: int = 0
    lapses: int = 0
    scheduled_days: int = 0
    learning_step: int = 0
    last_review: datetime | None = None
    suspended: bool = False
    buried_until: datetime | None = None
    deck: str | None = None

    # Content and provenance (never touched by grading)
    question: str | None = None
    answer: str | None = None
    source_note: str | None = None
    created_at: datetime | None = None

    @property
    def is_learning(self) -> bool:
        return self.state.is_learning

    def is_buried(self, now: datetime) -> bool:
        if self.buried_until is None:
            return False
        return self.buried_until > now

    def is_active(self, now: datetime) -> bool:
        """True when the card is neither suspended nor currently buried."""
        return not self.suspended and not self.is_buried(now)


@dataclass(frozen=True)
class ReviewResult:
    """
    Immutable record of one grading event.

    Attributes:
        card_id: The card that was graded.
        rating: Button pressed (1=Again, 2=Hard, 3=Good, 4=Easy).
        timestamp: When the grading happened.
        response_time_ms: Time spent answering.
        previous_state: Card state before this grading.
        scheduled_days_before_grading: Interval the card had before grading.
        elapsed_days_since_last_review: Whole days since the previous grading.
    """

    card_id: str
    rating: Rating
    timestamp: datetime
    response_time_ms: int
    previous_state: State
    scheduled_days_before_grading: int
    elapsed_days_since_last_review: int


NewCardOrder = Literal["input", "oldest-first", "newest-first", "random"]
ReviewOrder = Literal["due-date", "random", "due-date-random"]
NewReviewMix = Literal["show-after-reviews", "show-before-reviews", "mix-with-reviews"]
StateFilter = Literal["due", "learning", "new"]


@dataclass(frozen=True)
class QueueBuildOptions:
    """
    Configuration for one queue build.

    The defaults reproduce the standard tier order:
    due learning, reviews, new cards, pending learning.
    """

    new_cards_limit: int
    reviews_limit: int
    already_reviewed_today: frozenset[str] = frozenset()
    new_cards_studied_today: int = 0
    deck_filter: str | None = None
    learn_ahead_minutes: int = LEARN_AHEAD_MINUTES
    day_start_hour: int = DEFAULT_DAY_START_HOUR

    # Display order
    new_card_order: NewCardOrder = "input"
    review_order: ReviewOrder = "due-date"
    new_review_mix: NewReviewMix = "show-after-reviews"
    seed: int | None = None

    # Custom session filters
    source_note_filters: frozenset[str] = frozenset()
    state_filter: StateFilter | None = None
    weak_cards_only: bool = False
    created_today_only: bool = False
    created_this_week: bool = False
    ignore_daily_limits: bool = False
    bypass_scheduling: bool = False

    def __post_init__(self):
        for name in (
            "new_cards_limit",
            "reviews_limit",
            "new_cards_studied_today",
            "learn_ahead_minutes",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
        if not 0 <= self.day_start_hour <= 23:
            raise ValueError(
                f"day_start_hour must be between 0 and 23, got {self.day_start_hour}"
            )
        # Accept any iterable of ids from callers
        object.__setattr__(
            self, "already_reviewed_today", frozenset(self.already_reviewed_today)
        )
        object.__setattr__(self, "source_note_filters", frozenset(self.source_note_filters))

    @property
    def remaining_new_slots(self) -> int:
        return max(0, self.new_cards_limit - self.new_cards_studied_today)


@dataclass(frozen=True)
class SessionStats:
    """Statistics for one study session."""

    total: int
    reviewed: int
    again: int
    hard: int
    good: int
    easy: int
    new_cards: int
    learning_cards: int
    review_cards: int
    duration: timedelta


@dataclass(frozen=True)
class DailyStats:
    """Summary of today's study progress."""

    date: str
    new_reviewed: int
    reviews_completed: int
    due_today: int
    new_remaining: int


@dataclass(frozen=True)
class StreakInfo:
    current_streak: int
    longest_streak: int


@dataclass
class DailyStatsRecord:
    """
    Per-day counters persisted by the daily-stats collaborator.

    Also used as the increment/decrement payload (a "delta") built from a
    single review.
    """

    date: str
    reviews_completed: int = 0
    new_cards_studied: int = 0
    total_time_ms: int = 0
    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0
    new_cards: int = 0
    learning_cards: int = 0
    review_cards: int = 0
    reviewed_card_ids: set[str] = field(default_factory=set)


# A delta has the same shape as a stored record
DailyStatsDelta = DailyStatsRecord

COUNTER_FIELDS = (
    "reviews_completed",
    "new_cards_studied",
    "total_time_ms",
    "again",
    "hard",
    "good",
    "easy",
    "new_cards",
    "learning_cards",
    "review_cards",
)


@dataclass(frozen=True)
class TodaySummary:
    studied: int
    minutes: int
    new_cards: int
    review_cards: int
    again: int
    correct_rate: float


@dataclass(frozen=True)
class CardMaturityBreakdown:
    """
    Card counts by maturity.

    Young: review cards with an interval under 21 days.
    Mature: review cards with an interval of 21 days or more.
    """

    new: int
    learning: int
    young: int
    mature: int
    suspended: int
    buried: int
