"""
Application configuration loaded from environment variables with sensible
defaults for local development.

All settings are validated at startup via Pydantic ``BaseSettings``.
"""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the WeddingBook pricing engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -- Application --
    app_name: str = "WeddingBook Pricing API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # -- API --
    api_v1_prefix: str = "/api/v1"

    # -- Cancellation policy --
    # Deposit fraction collected on confirmation; no band inside 90 days may
    # charge less than this when the floor is enforced.
    cancellation_deposit_floor: Decimal = Field(
        default=Decimal("0.30"),
        ge=0,
        le=1,
    )
    cancellation_enforce_deposit_floor: bool = True


settings = Settings()
