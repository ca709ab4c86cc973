"""
Review Engine Factory
Centralizes wiring of adapters and services from configuration.
"""

import logging
from datetime import tzinfo

from mneme.application.config import AppConfig
from mneme.application.day_boundary import DayBoundary
from mneme.application.review_service import ReviewService
from mneme.application.stats.service import ReviewStatsService
from mneme.domain.review.ports import Scheduler
from mneme.infrastructure.adapters.fsrs_scheduler import FsrsScheduler
from mneme.infrastructure.adapters.memory import InMemoryDailyStatsRepository
from mneme.infrastructure.adapters.yaml_cards import YamlCardRepository

logger = logging.getLogger(__name__)


def get_scheduler(config: AppConfig) -> Scheduler:
    return FsrsScheduler(desired_retention=config.desired_retention)


def get_card_repository(config: AppConfig) -> YamlCardRepository:
    if config.cards_file is None:
        raise ValueError("no cards file configured")
    return YamlCardRepository(config.cards_file)


async def get_stats_service(
    config: AppConfig, card_repo: YamlCardRepository, tz: tzinfo | None = None
) -> ReviewStatsService:
    """
    Returns a stats service whose daily counters are rebuilt from the card
    file's review log.
    """
    service = ReviewStatsService(
        InMemoryDailyStatsRepository(),
        DayBoundary(day_start_hour=config.day_start_hour, tz=tz),
    )
    reviews = await card_repo.get_reviews()
    for review in reviews:
        await service.record_review(review)
    logger.debug(f"Replayed {len(reviews)} reviews into daily stats")
    return service


async def get_review_service(
    config: AppConfig, card_repo: YamlCardRepository, tz: tzinfo | None = None
) -> ReviewService:
    stats_service = await get_stats_service(config, card_repo, tz)
    return ReviewService(card_repo, get_scheduler(config), stats_service, config)
