from collections.abc import Iterable
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mneme.domain.constants import (
    DEFAULT_DAY_START_HOUR,
    DEFAULT_DESIRED_RETENTION,
    DEFAULT_NEW_CARDS_PER_DAY,
    DEFAULT_REVIEWS_PER_DAY,
    LEARN_AHEAD_MINUTES,
    REQUEUE_HORIZON,
)
from mneme.domain.review.models import QueueBuildOptions

CONFIG_FILES = [
    Path.home() / ".config/mneme/config.toml",
    Path.home() / ".mneme.toml",
]

DEFAULT_CARDS_FILE = "cards.yaml"


class AppConfig(BaseSettings):
    """
    Configuration model for mneme.
    Supports loading from:
    1. Environment variables (MNEME_*)
    2. Config file (~/.config/mneme/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEME_",
        extra="ignore",
    )

    # Paths
    cards_file: Path | None = None

    # Daily limits
    new_cards_per_day: int = DEFAULT_NEW_CARDS_PER_DAY
    reviews_per_day: int = DEFAULT_REVIEWS_PER_DAY

    # Scheduling
    learn_ahead_minutes: int = LEARN_AHEAD_MINUTES
    requeue_horizon_minutes: int = int(REQUEUE_HORIZON.total_seconds() // 60)
    day_start_hour: int = DEFAULT_DAY_START_HOUR
    desired_retention: float = DEFAULT_DESIRED_RETENTION
    deck: str | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing config file wins; earlier sources take priority
        toml_file = next((f for f in CONFIG_FILES if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("cards_file", mode="before")
    @classmethod
    def resolve_cards_file(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    @field_validator(
        "new_cards_per_day", "reviews_per_day", "learn_ahead_minutes", "requeue_horizon_minutes"
    )
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("day_start_hour")
    @classmethod
    def valid_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError("must be between 0 and 23")
        return v

    @field_validator("desired_retention")
    @classmethod
    def valid_retention(cls, v: float) -> float:
        if not 0 < v < 1:
            raise ValueError("must be between 0 and 1 (exclusive)")
        return v

    @property
    def requeue_horizon(self) -> timedelta:
        return timedelta(minutes=self.requeue_horizon_minutes)

    def queue_options(
        self,
        already_reviewed_today: Iterable[str] = (),
        new_cards_studied_today: int = 0,
        deck: str | None = None,
    ) -> QueueBuildOptions:
        """Build queue options from the configured limits."""
        return QueueBuildOptions(
            new_cards_limit=self.new_cards_per_day,
            reviews_limit=self.reviews_per_day,
            already_reviewed_today=frozenset(already_reviewed_today),
            new_cards_studied_today=new_cards_studied_today,
            deck_filter=deck if deck is not None else self.deck,
            learn_ahead_minutes=self.learn_ahead_minutes,
            day_start_hour=self.day_start_hour,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mneme/config.toml (if exists)
    3. Environment variables (MNEME_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.cards_file is None:
        config.cards_file = (Path.cwd() / DEFAULT_CARDS_FILE).resolve()

    return config
