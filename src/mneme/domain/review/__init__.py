# Domain Review Package
from .models import (
    CardMaturityBreakdown,
    CardState,
    DailyStats,
    DailyStatsDelta,
    DailyStatsRecord,
    QueueBuildOptions,
    Rating,
    ReviewResult,
    SessionStats,
    State,
    StreakInfo,
    TodaySummary,
)
from .ports import CardRepository, DailyStatsRepository, Scheduler

__all__ = [
    "CardState",
    "CardMaturityBreakdown",
    "DailyStats",
    "DailyStatsDelta",
    "DailyStatsRecord",
    "QueueBuildOptions",
    "Rating",
    "ReviewResult",
    "SessionStats",
    "State",
    "StreakInfo",
    "TodaySummary",
    "Scheduler",
    "CardRepository",
    "DailyStatsRepository",
]
