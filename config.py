"""
Configuration settings for adaptest.

Uses Pydantic Settings for environment variable management with .env file support.
Every setting can be overridden with an ADAPTEST_ prefixed variable.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Sample question bank shipped inside the package
SAMPLE_QUESTIONS_PATH = Path(__file__).resolve().parent / "adaptest" / "data" / "questions.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ADAPTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Session shape
    # ========================================
    session_length: int = Field(
        default=5,
        ge=1,
        description="Number of questions presented in a generated session",
    )
    arrays_quota: int = Field(
        default=3,
        ge=0,
        description="Questions drawn from the Arrays bucket",
    )
    linked_lists_quota: int = Field(
        default=2,
        ge=0,
        description="Questions drawn from the Linked Lists bucket",
    )

    # ========================================
    # Timers (seconds)
    # ========================================
    feedback_dwell_seconds: float = Field(
        default=3.0,
        gt=0,
        description="How long an algorithm feedback message stays on screen",
    )
    knowledge_followup_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay before DKT over/underconfidence follow-up messages",
    )
    tick_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Elapsed-time display refresh interval",
    )

    # ========================================
    # Default strategies (CLI)
    # ========================================
    default_selection: str = Field(default="QLearning")
    default_scheduling: str = Field(default="SM2")
    default_reward: str = Field(default="VariableRatio")
    default_knowledge_tracing: str = Field(default="DKT")

    # ========================================
    # Storage
    # ========================================
    questions_path: Path = Field(
        default=SAMPLE_QUESTIONS_PATH,
        description="JSON question bank",
    )
    attempts_dir: Path = Field(
        default=Path.home() / ".adaptest" / "attempts",
        description="Directory for stored attempts",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="loguru level for the stderr sink",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
