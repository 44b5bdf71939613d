"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. The escrow agent identity and
the initial fee percentage are read once, at registry bring-up; after that
they change only through the agent-gated setters on the registry.

Usage:
    from trade_escrow.config import get_settings
    settings = get_settings()
    print(settings.escrow_agent)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_FEE_PERCENTAGE = 10


class Settings(BaseSettings):
    """Central configuration for the trade escrow."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_log_level: str = "INFO"
    log_json: bool = False

    # --- Escrow bring-up ---
    escrow_agent: str = Field(default="escrow-agent", min_length=1)
    escrow_fee_percentage: int = Field(default=2, ge=0, le=MAX_FEE_PERCENTAGE)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
