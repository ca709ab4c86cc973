"""
YAML Card Repository — Infrastructure adapter for a YAML card file.

File layout:

    cards:
      - id: card-1
        state: review
        due: 2024-01-10T09:00:00+00:00
        stability: 12.5
        ...
    reviews:
      - card_id: card-1
        rating: 3
        timestamp: 2024-01-09T09:00:00+00:00
        ...

Timestamps without an offset are read as UTC.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml  # type: ignore

from mneme.domain.review.models import CardState, Rating, ReviewResult, State
from mneme.domain.review.ports import CardRepository

logger = logging.getLogger(__name__)

# Due date for new cards stored without one
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class YamlCardRepository(CardRepository):
    """
    Keeps cards and the review log in a single YAML file.

    The file is read lazily and rewritten on every change.
    """

    def __init__(self, path: Path):
        self.path = path
        self._cards: dict[str, CardState] | None = None
        self._reviews: list[ReviewResult] = []

    def _load(self) -> dict[str, CardState]:
        if self._cards is not None:
            return self._cards

        if not self.path.exists():
            logger.warning(f"Card file {self.path} does not exist; starting empty")
            self._cards = {}
            return self._cards

        data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path}: expected a mapping with 'cards' and 'reviews'")

        cards = [card_from_dict(item) for item in data.get("cards") or []]
        self._cards = {card.id: card for card in cards}
        self._reviews = [review_from_dict(item) for item in data.get("reviews") or []]
        logger.debug(f"Loaded {len(cards)} cards and {len(self._reviews)} reviews from {self.path}")
        return self._cards

    def _save(self) -> None:
        cards = self._load()
        data = {
            "cards": [card_to_dict(card) for card in cards.values()],
            "reviews": [review_to_dict(review) for review in self._reviews],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8"
        )

    async def get(self, card_id: str) -> CardState | None:
        return self._load().get(card_id)

    async def set(self, card: CardState) -> None:
        self._load()[card.id] = card
        self._save()

    async def get_all(self) -> list[CardState]:
        return list(self._load().values())

    async def get_reviews(self) -> list[ReviewResult]:
        self._load()
        return list(self._reviews)

    async def append_review(self, result: ReviewResult) -> None:
        self._load()
        self._reviews.append(result)
        self._save()


# ---------- Serialization ----------


def parse_timestamp(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value)
        except ValueError:
            raise ValueError(f"malformed timestamp for {field_name}: {value!r}") from None
    else:
        raise ValueError(f"malformed timestamp for {field_name}: {value!r}")

    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _optional_timestamp(value: Any, field_name: str) -> datetime | None:
    if value is None:
        return None
    return parse_timestamp(value, field_name)


def parse_state(value: Any) -> State:
    if isinstance(value, str):
        try:
            return State[value.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown card state {value!r}") from None
    try:
        return State(value)
    except ValueError:
        raise ValueError(f"unknown card state {value!r}") from None


def card_from_dict(data: dict[str, Any]) -> CardState:
    if "id" not in data:
        raise ValueError(f"card entry is missing 'id': {data!r}")

    state = parse_state(data.get("state", State.NEW))
    due = data.get("due")
    if due is None and state != State.NEW:
        raise ValueError(f"card {data['id']} has no due date")
    last_review = data.get("last_review")
    if last_review is None and state in (State.REVIEW, State.RELEARNING):
        raise ValueError(
            f"card {data['id']} is in state {state.name.lower()} but has no last_review"
        )

    return CardState(
        id=str(data["id"]),
        state=state,
        due=parse_timestamp(due, "due") if due is not None else EPOCH,
        stability=float(data.get("stability", 0.0)),
        difficulty=float(data.get("difficulty", 0.0)),
        reps=int(data.get("reps", 0)),
        lapses=int(data.get("lapses", 0)),
        scheduled_days=int(data.get("scheduled_days", 0)),
        learning_step=int(data.get("learning_step", 0)),
        last_review=_optional_timestamp(last_review, "last_review"),
        suspended=bool(data.get("suspended", False)),
        buried_until=_optional_timestamp(data.get("buried_until"), "buried_until"),
        deck=data.get("deck"),
        question=data.get("question"),
        answer=data.get("answer"),
        source_note=data.get("source_note"),
        created_at=_optional_timestamp(data.get("created_at"), "created_at"),
    )


def card_to_dict(card: CardState) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": card.id,
        "state": card.state.name.lower(),
        "due": card.due.isoformat(),
        "stability": card.stability,
        "difficulty": card.difficulty,
        "reps": card.reps,
        "lapses": card.lapses,
        "scheduled_days": card.scheduled_days,
        "learning_step": card.learning_step,
        "last_review": card.last_review.isoformat() if card.last_review else None,
        "suspended": card.suspended,
    }
    if card.buried_until is not None:
        data["buried_until"] = card.buried_until.isoformat()
    for name in ("deck", "question", "answer", "source_note"):
        value = getattr(card, name)
        if value is not None:
            data[name] = value
    if card.created_at is not None:
        data["created_at"] = card.created_at.isoformat()
    return data


def review_from_dict(data: dict[str, Any]) -> ReviewResult:
    if "card_id" not in data:
        raise ValueError(f"review entry is missing 'card_id': {data!r}")
    try:
        rating = Rating(int(data["rating"]))
    except (KeyError, ValueError, TypeError):
        raise ValueError(f"review entry has an invalid rating: {data!r}") from None

    return ReviewResult(
        card_id=str(data["card_id"]),
        rating=rating,
        timestamp=parse_timestamp(data.get("timestamp"), "timestamp"),
        response_time_ms=int(data.get("response_time_ms", 0)),
        previous_state=parse_state(data.get("previous_state", State.NEW)),
        scheduled_days_before_grading=int(data.get("scheduled_days_before_grading", 0)),
        elapsed_days_since_last_review=int(data.get("elapsed_days_since_last_review", 0)),
    )


def review_to_dict(result: ReviewResult) -> dict[str, Any]:
    return {
        "card_id": result.card_id,
        "rating": int(result.rating),
        "timestamp": result.timestamp.isoformat(),
        "response_time_ms": result.response_time_ms,
        "previous_state": result.previous_state.name.lower(),
        "scheduled_days_before_grading": result.scheduled_days_before_grading,
        "elapsed_days_since_last_review": result.elapsed_days_since_last_review,
    }
