"""
Engine configuration using pydantic-settings.

Loads tunable scoring policy from environment variables (prefix ``BRENNER_``)
and .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BRENNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Potency checks
    min_text_length: int = Field(
        default=10,
        ge=1,
        description="Minimum length for a potency-check component to count as specific",
    )

    # Evidence-per-week inflation policy
    inflated_total_threshold: int = Field(
        default=11,
        ge=0,
        le=12,
        description="Total evidence-per-week score at or above which scores are flagged",
    )
    flag_cheap_and_fast: bool = Field(
        default=True,
        description="Flag tests scored both maximally cheap and maximally fast",
    )

    # Test binding
    confidence_boost_prediction_count: int = Field(
        default=3,
        ge=1,
        description="Supporting predictions needed to raise suggestion confidence one step",
    )
    potency_failure_confidence_penalty: int = Field(
        default=2,
        ge=0,
        description="Confidence steps lost when the potency check failed",
    )

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached engine settings.

    Returns:
        Settings: Engine settings instance.
    """
    return Settings()
