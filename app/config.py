"""
Juni — Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Juni backend."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Database
    # ------------------------------------------------------------------ #
    DATABASE_URL: str = "sqlite+aiosqlite:///./juni.db"

    # ------------------------------------------------------------------ #
    # Matching
    # ------------------------------------------------------------------ #
    DEFAULT_MATCH_LIMIT: int = 5

    # ------------------------------------------------------------------ #
    # Payouts
    # ------------------------------------------------------------------ #
    HOURLY_RATE_CENTS: int = 2600    # $26.00/hr
    PLATFORM_FEE_PCT: float = 0.10   # 10% platform fee
    PAYOUT_CURRENCY: str = "usd"
    PAYOUT_CONCURRENCY: int = 4

    # ------------------------------------------------------------------ #
    # Stripe Connect (companion transfers)
    # ------------------------------------------------------------------ #
    STRIPE_SECRET_KEY: str = ""
    STRIPE_API_BASE: str = "https://api.stripe.com"
    TRANSFER_TIMEOUT_SECONDS: float = 20.0
    TRANSFER_MAX_ATTEMPTS: int = 3

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @field_validator("PLATFORM_FEE_PCT")
    @classmethod
    def _fee_must_be_a_fraction(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError(f"Platform fee must be in [0, 1), got {v}")
        return v

    @field_validator("HOURLY_RATE_CENTS", "PAYOUT_CONCURRENCY", "TRANSFER_MAX_ATTEMPTS")
    @classmethod
    def _must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime.  Import this function anywhere you
    need access to configuration::

        from app.config import get_settings
        settings = get_settings()
    """
    return Settings()
