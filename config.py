"""
Configuration settings for the exercise engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # ========================================
    # Session
    # ========================================
    session_total_points: float = Field(
        default=100.0,
        gt=0,
        description="Points shared by all definitions without an explicit weight",
    )
    default_difficulty: str = Field(
        default="medium",
        description="Difficulty assumed when raw input has none (easy, medium, hard or 1-5)",
    )
    shuffle_definitions: bool = Field(
        default=False,
        description="Shuffle definition order when a session starts",
    )
    shuffle_seed: int | None = Field(
        default=None,
        description="Seed for reproducible shuffling",
    )

    # ========================================
    # Retry policy (retries allowed after an incorrect answer)
    # ========================================
    retry_limit_single_choice: int = Field(default=1, ge=0)
    retry_limit_multi_choice: int = Field(default=0, ge=0)
    retry_limit_position_mapping: int = Field(default=1, ge=0)
    retry_limit_free_text: int = Field(default=1, ge=0)
    retry_limit_ordered_sequence: int = Field(default=1, ge=0)
    retry_limit_highlight_set: int = Field(default=1, ge=0)

    def get_retry_policy(self) -> dict[str, int]:
        """Retry limit per canonical kind."""
        return {
            "single-choice": self.retry_limit_single_choice,
            "multi-choice": self.retry_limit_multi_choice,
            "position-mapping": self.retry_limit_position_mapping,
            "free-text": self.retry_limit_free_text,
            "ordered-sequence": self.retry_limit_ordered_sequence,
            "highlight-set": self.retry_limit_highlight_set,
        }

    def get_session_config(self) -> dict[str, Any]:
        """Get session configuration as a dictionary."""
        return {
            "total_points": self.session_total_points,
            "default_difficulty": self.default_difficulty,
            "shuffle": self.shuffle_definitions,
            "seed": self.shuffle_seed,
            "retry_policy": self.get_retry_policy(),
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
