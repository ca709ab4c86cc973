"""
Queue builder for review sessions.

Builds ordered study queues by:
1. Filtering out cards that are excluded (deck, suspended, buried, studied today)
2. Partitioning the rest into learning, review and new tiers
3. Assembling due learning -> reviews -> new -> pending learning

Pending learning cards go last so a "come back later" waiting state only shows
once every other card is exhausted.
"""

import random
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from mneme.application.day_boundary import DayBoundary
from mneme.domain.constants import WEAK_STABILITY_DAYS
from mneme.domain.review.models import CardState, QueueBuildOptions, State


def build_queue(
    all_cards: Iterable[CardState],
    options: QueueBuildOptions,
    now: datetime,
) -> list[CardState]:
    """
    Build an ordered review queue from the full card set.

    Args:
        all_cards: Every card known to storage.
        options: Limits, filters and ordering for this build.
        now: Reference time for due checks, burial and the learn-ahead window.

    Returns:
        The ordered list of cards to study. Input cards are never modified.
    """
    rng = random.Random(options.seed)

    created_after = _created_cutoff(options, now)
    candidates = [
        card for card in all_cards if _is_eligible(card, options, now, created_after)
    ]

    # 1. Learning and relearning cards, split around the learn-ahead window
    learn_ahead_time = now + timedelta(minutes=options.learn_ahead_minutes)
    learning = [card for card in candidates if card.is_learning]

    if options.bypass_scheduling:
        due_learning = learning
        pending_learning: list[CardState] = []
    else:
        due_learning = [card for card in learning if card.due <= learn_ahead_time]
        pending_learning = [card for card in learning if card.due > learn_ahead_time]

    # 2. Review cards (earliest due first, then capped)
    reviews = [
        card
        for card in candidates
        if card.state == State.REVIEW and (options.bypass_scheduling or card.due <= now)
    ]
    reviews = sort_by_due(reviews)
    if not options.ignore_daily_limits:
        reviews = reviews[: options.reviews_limit]
    reviews = _order_reviews(reviews, options, rng)

    # 3. New cards (daily budget)
    new_cards = [card for card in candidates if card.state == State.NEW]
    new_cards = _order_new_cards(new_cards, options, rng)
    if not options.ignore_daily_limits:
        new_cards = new_cards[: options.remaining_new_slots]

    return [
        *sort_by_due(due_learning),
        *_mix(reviews, new_cards, options),
        *sort_by_due(pending_learning),
    ]


def sort_by_due(cards: Iterable[CardState]) -> list[CardState]:
    """Sort cards by due date, earliest first. Ties keep input order."""
    return sorted(cards, key=lambda card: card.due)


def interleave(primary: Sequence[CardState], secondary: Sequence[CardState]) -> list[CardState]:
    """
    Spread `secondary` evenly through `primary`.

    Example: 4 reviews and 2 new cards give R R N R R N.
    """
    if not secondary:
        return list(primary)
    if not primary:
        return list(secondary)

    result: list[CardState] = []
    ratio = len(primary) / len(secondary)
    primary_index = 0

    for secondary_index, card in enumerate(secondary):
        target = int((secondary_index + 1) * ratio)
        while primary_index < min(target, len(primary)):
            result.append(primary[primary_index])
            primary_index += 1
        result.append(card)

    result.extend(primary[primary_index:])
    return result


def _is_eligible(
    card: CardState,
    options: QueueBuildOptions,
    now: datetime,
    created_after: datetime | None = None,
) -> bool:
    """Apply every exclusion rule that holds across all tiers."""
    if not card.is_active(now):
        return False

    if options.deck_filter is not None and card.deck != options.deck_filter:
        return False

    if options.source_note_filters and card.source_note not in options.source_note_filters:
        return False

    if options.weak_cards_only and card.stability >= WEAK_STABILITY_DAYS:
        return False

    if created_after is not None:
        if card.created_at is None or card.created_at < created_after:
            return False

    if options.state_filter == "new" and card.state != State.NEW:
        return False
    if options.state_filter == "learning" and not card.is_learning:
        return False
    if options.state_filter == "due" and card.state != State.REVIEW:
        return False

    # Learning cards may need several reviews in one day
    if card.id in options.already_reviewed_today and not card.is_learning:
        return False

    return True


def _created_cutoff(options: QueueBuildOptions, now: datetime) -> datetime | None:
    """Earliest creation time allowed by the created-today / created-this-week filters."""
    if not (options.created_today_only or options.created_this_week):
        return None
    today_start = DayBoundary(options.day_start_hour).today_start(now)
    if options.created_today_only:
        return today_start
    return today_start - timedelta(days=7)


def _order_reviews(
    reviews: list[CardState], options: QueueBuildOptions, rng: random.Random
) -> list[CardState]:
    if options.review_order == "random":
        shuffled = list(reviews)
        rng.shuffle(shuffled)
        return shuffled

    if options.review_order == "due-date-random":
        # Keep day order, shuffle cards due on the same day
        groups: dict[object, list[CardState]] = {}
        for card in reviews:
            groups.setdefault(card.due.date(), []).append(card)
        ordered: list[CardState] = []
        for group in groups.values():
            rng.shuffle(group)
            ordered.extend(group)
        return ordered

    return reviews


def _order_new_cards(
    new_cards: list[CardState], options: QueueBuildOptions, rng: random.Random
) -> list[CardState]:
    if options.new_card_order == "random":
        shuffled = list(new_cards)
        rng.shuffle(shuffled)
        return shuffled

    if options.new_card_order in ("oldest-first", "newest-first"):
        # Cards without a creation time sort as the oldest
        def created_key(card: CardState) -> tuple[float, str]:
            created = card.created_at.timestamp() if card.created_at else 0.0
            return (created, card.id)

        return sorted(
            new_cards,
            key=created_key,
            reverse=options.new_card_order == "newest-first",
        )

    return new_cards


def _mix(
    reviews: list[CardState], new_cards: list[CardState], options: QueueBuildOptions
) -> list[CardState]:
    if options.new_review_mix == "show-before-reviews":
        return [*new_cards, *reviews]
    if options.new_review_mix == "mix-with-reviews":
        return interleave(reviews, new_cards)
    return [*reviews, *new_cards]
