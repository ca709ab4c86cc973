# Infrastructure Adapters Package
from .fsrs_scheduler import FsrsScheduler
from .memory import InMemoryCardRepository, InMemoryDailyStatsRepository
from .yaml_cards import YamlCardRepository

__all__ = [
    "FsrsScheduler",
    "InMemoryCardRepository",
    "InMemoryDailyStatsRepository",
    "YamlCardRepository",
]
