"""
Application configuration using Pydantic Settings.

Engine tunings (category weights, multipliers, thresholds) live in
`fairshare.models.engine_config`; this module is the composition root that
builds the default `EngineConfig` from environment overrides.
"""

from functools import lru_cache
from typing import Literal

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from fairshare.core.exceptions import ConfigurationError
from fairshare.models.engine_config import (
    DecayConfig,
    EngineConfig,
    FatigueConfig,
    OptimizerConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FAIRSHARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    DEBUG: bool = False

    # ===========================================
    # Logging
    # ===========================================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ===========================================
    # Engine tuning overrides
    # ===========================================
    # Version tag stamped on the EngineConfig so persisted scores can be traced
    CONFIG_VERSION: str = "2024.1"

    # History lookback window; entries older than this clamp at DECAY_FLOOR
    LOOKBACK_DAYS: int = 30
    DECAY_FLOOR: float = 0.1

    # Daily load considered sustainable when computing fatigue
    REFERENCE_DAILY_LOAD: float = 8.0

    # Capacity used when a member profile carries none
    DEFAULT_MAX_WEEKLY_LOAD: float = 20.0


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()


def build_engine_config(settings: Settings) -> EngineConfig:
    """Build an EngineConfig from defaults plus the settings overrides."""
    try:
        return EngineConfig(
            version=settings.CONFIG_VERSION,
            decay=DecayConfig(
                max_age_days=settings.LOOKBACK_DAYS,
                floor=settings.DECAY_FLOOR,
            ),
            fatigue=FatigueConfig(reference_daily_load=settings.REFERENCE_DAILY_LOAD),
            optimizer=OptimizerConfig(default_max_weekly_load=settings.DEFAULT_MAX_WEEKLY_LOAD),
        )
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid engine configuration {settings.CONFIG_VERSION}", details=e.errors()
        ) from e


@lru_cache()
def get_engine_config() -> EngineConfig:
    """
    Get the default engine configuration.

    Services fall back to this when no config is passed explicitly, so
    alternate tunings can still be injected side by side in tests.
    """
    return build_engine_config(get_settings())
