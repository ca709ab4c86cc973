from datetime import timedelta

import pytest

from mneme.application.config import AppConfig
from mneme.application.day_boundary import DayBoundary
from mneme.application.review_service import ReviewService
from mneme.application.stats.service import ReviewStatsService
from mneme.domain.review.models import Rating, State
from mneme.infrastructure.adapters.memory import (
    InMemoryCardRepository,
    InMemoryDailyStatsRepository,
)


@pytest.fixture
def config(tmp_path):
    return AppConfig(cards_file=tmp_path / "cards.yaml", new_cards_per_day=2, reviews_per_day=10)


@pytest.fixture
def card_repo(make_card, now):
    return InMemoryCardRepository(
        [
            make_card("r1", State.REVIEW, now - timedelta(days=3)),
            make_card("n1"),
            make_card("n2"),
            make_card("n3"),
            make_card("spanish", deck="Spanish"),
        ]
    )


@pytest.fixture
def stats_service():
    return ReviewStatsService(InMemoryDailyStatsRepository(), DayBoundary(day_start_hour=4))


@pytest.fixture
def service(card_repo, stub_scheduler, stats_service, config):
    return ReviewService(card_repo, stub_scheduler, stats_service, config)


@pytest.mark.asyncio
async def test_build_queue_applies_limits(service, now):
    queue = await service.build_queue(now)

    assert [c.id for c in queue] == ["r1", "n1", "n2"]


def test_day_boundary_comes_from_stats_service(service, stats_service):
    assert service.day_boundary is stats_service.day_boundary
    assert service.day_boundary.day_start_hour == 4


@pytest.mark.asyncio
async def test_build_queue_deck_filter(service, now):
    queue = await service.build_queue(now, deck="Spanish")

    assert [c.id for c in queue] == ["spanish"]


@pytest.mark.asyncio
async def test_grade_card_persists_and_records(service, card_repo, stats_service, now):
    card = await card_repo.get("n1")

    outcome = await service.grade_card(card, Rating.GOOD, 2500, now)

    stored = await card_repo.get("n1")
    assert stored == outcome.updated_card
    assert stored.state == State.REVIEW

    record = await stats_service.today_record(now)
    assert record.reviews_completed == 1
    assert record.new_cards_studied == 1
    assert record.reviewed_card_ids == {"n1"}


@pytest.mark.asyncio
async def test_graded_cards_leave_todays_queue(service, card_repo, now):
    await service.grade_card(await card_repo.get("r1"), Rating.GOOD, 0, now)
    await service.grade_card(await card_repo.get("n1"), Rating.GOOD, 0, now)

    queue = await service.build_queue(now + timedelta(minutes=1))

    # One new slot left today
    assert [c.id for c in queue] == ["n2"]


@pytest.mark.asyncio
async def test_learning_card_stays_in_queue_after_again(service, card_repo, now):
    await service.grade_card(await card_repo.get("n1"), Rating.AGAIN, 0, now)

    queue = await service.build_queue(now + timedelta(minutes=6))

    assert [c.id for c in queue] == ["n1", "r1", "n2"]


@pytest.mark.asyncio
async def test_undo_grade(service, card_repo, stats_service, now):
    original = await card_repo.get("n1")
    outcome = await service.grade_card(original, Rating.GOOD, 0, now)

    await service.undo_grade(original, outcome.result)

    assert await card_repo.get("n1") == original
    record = await stats_service.today_record(now)
    assert record.reviews_completed == 0
    assert record.new_cards_studied == 0


@pytest.mark.asyncio
async def test_undo_grade_rejects_mismatched_card(service, card_repo, now):
    outcome = await service.grade_card(await card_repo.get("n1"), Rating.GOOD, 0, now)

    with pytest.raises(ValueError, match="cannot undo"):
        await service.undo_grade(await card_repo.get("n2"), outcome.result)


@pytest.mark.asyncio
async def test_invalid_rating_persists_nothing(service, card_repo, stats_service, now):
    card = await card_repo.get("n1")

    with pytest.raises(ValueError):
        await service.grade_card(card, 9, 0, now)

    assert await card_repo.get("n1") == card
    assert (await stats_service.today_record(now)).reviews_completed == 0


@pytest.mark.asyncio
async def test_daily_stats(service, card_repo, now):
    outcome = await service.grade_card(await card_repo.get("n1"), Rating.GOOD, 0, now)

    stats = await service.daily_stats(now, [outcome.result])

    assert stats.date == "2024-01-10"
    assert stats.new_reviewed == 1
    assert stats.new_remaining == 1
    # n1 is now due tomorrow at noon, after the next 4 AM cutoff
    assert stats.due_today == 1


@pytest.mark.asyncio
async def test_session_round_trip(service, card_repo, stats_service, now):
    session = await service.start_session(now)
    assert [c.id for c in session.queue] == ["r1", "n1", "n2"]

    await service.answer_current(session, Rating.GOOD, 0, now)
    await service.answer_current(session, Rating.AGAIN, 0, now)

    # n1 came back after n2
    assert [c.id for c in session.queue] == ["n2", "n1"]
    assert (await card_repo.get("n1")).state == State.LEARNING
    assert (await stats_service.today_record(now)).reviews_completed == 2


@pytest.mark.asyncio
async def test_session_uses_configured_requeue_horizon(
    card_repo, stub_scheduler, stats_service, tmp_path, now
):
    config = AppConfig(cards_file=tmp_path / "cards.yaml", requeue_horizon_minutes=5)
    service = ReviewService(card_repo, stub_scheduler, stats_service, config)
    session = await service.start_session(now, deck="Spanish")

    await service.answer_current(session, Rating.AGAIN, 0, now)

    assert session.is_finished
