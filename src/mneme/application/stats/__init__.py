# Application Stats Package
from .aggregator import (
    calculate_daily_stats,
    calculate_retention_rate,
    calculate_session_stats,
    card_maturity_breakdown,
    get_streak_info,
    streak_from_days,
)
from .service import ReviewStatsService

__all__ = [
    "calculate_session_stats",
    "calculate_daily_stats",
    "calculate_retention_rate",
    "get_streak_info",
    "streak_from_days",
    "card_maturity_breakdown",
    "ReviewStatsService",
]
