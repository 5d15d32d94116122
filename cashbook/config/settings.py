"""
Configuration Management for Cashbook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The storage backend is chosen from configuration in exactly one place
(cashbook.orchestrator.create_cashbook); ledger logic never sees it.
"""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Ledger store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CASHBOOK_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["sqlite", "memory"] = Field(
        default="sqlite",
        description="Which store implementation to use"
    )
    sqlite_path: str = Field(
        default="cash.db",
        description="Path to the SQLite database file (':memory:' allowed)"
    )
    busy_timeout_ms: int = Field(
        default=30000,
        ge=0,
        description="How long SQLite waits on a locked database"
    )
    connect_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Connection attempts before giving up"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Level for the cashbook loggers"
    )

    # Ledger
    ledger_timezone: str = Field(
        default="UTC",
        description="IANA timezone that defines calendar days for reports"
    )
    operator_name: str = Field(
        default="operator",
        min_length=1,
        description="Identity recorded in created_by"
    )
    currency_code: str = Field(
        default="AED",
        min_length=3,
        max_length=3,
        description="Display currency (amounts are currency-agnostic)"
    )

    # Listing limits
    default_page_size: int = Field(
        default=50,
        ge=1,
        description="Transactions per history page when no limit is given"
    )
    max_page_size: int = Field(
        default=500,
        ge=1,
        description="Largest history page a caller may request"
    )
    recent_transactions_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Transactions shown on the dashboard"
    )

    @field_validator('ledger_timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @model_validator(mode='after')
    def validate_page_sizes(self) -> 'AppSettings':
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) cannot exceed "
                f"max_page_size ({self.max_page_size})"
            )
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        """Ledger timezone as a tzinfo object."""
        return ZoneInfo(self.ledger_timezone)


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry holding the message for each failure.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
