"""Configuration management with pydantic-settings.

Provides type-safe configuration with environment variable validation.
"""

from __future__ import annotations

from datetime import date
from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Database ===
    database_url: str = Field(
        "sqlite:///./supply_ledger.db",
        description="Database URL (SQLite locally, Postgres in production)",
    )

    # === Application settings ===
    app_timezone: str = Field(
        "Asia/Taipei", description="Store calendar timezone", validation_alias="TZ"
    )
    app_version: str = Field("0.4.0", description="Reported application version")
    environment: str = Field("production", description="Deployment environment label")

    # === Logging ===
    log_level: str = Field("INFO", description="Root log level")
    log_to_stdout: bool = Field(True, description="Write JSON logs to stdout")
    log_file_path: str | None = Field(
        None, description="Path to rotating JSON log file (unset = no file)"
    )

    # === Supply ledger ===
    supply_base_date: date = Field(
        date(2026, 2, 25),
        description="Date of the last manual count; the chain never replays before it",
    )
    supply_remaining_decimals: int = Field(
        1, ge=0, le=6, description="Decimal places kept when persisting remaining_qty"
    )
    supply_items_json: str = Field(
        "", description="Supply catalog override as JSON list (empty = built-in catalog)"
    )
    supply_chain_warn_days: int = Field(
        90, description="Healthcheck warns when the chain since the baseline exceeds this"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        RuntimeError: If an environment variable holds an invalid value.

    """
    try:
        return Settings()
    except ValidationError as e:
        bad_fields = [str(error["loc"][0]).upper() for error in e.errors() if error["loc"]]

        error_msg = (
            f"Configuration error: invalid environment variables: "
            f"{', '.join(bad_fields)}\n"
            f"Please fix them in .env file or the process environment."
        )
        raise RuntimeError(error_msg) from e


__all__ = ["Settings", "get_settings"]
