"""
Configuration Management for SpendWise

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine itself never reads the environment; the service factory
pulls storage location, initial budget defaults and the clock timezone
from these settings once at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Durable key-value store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPENDWISE_STORAGE_",
        extra="ignore"
    )

    backend: Literal["file", "memory"] = Field(
        default="file",
        description="Which key-value store backs the ledger snapshot"
    )
    data_dir: Path = Field(
        default=Path.home() / ".spendwise",
        description="Directory holding one JSON file per stored key"
    )
    state_key: str = Field(
        default="spendwise-state",
        min_length=1,
        pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$",
        description="Fixed identifier the full snapshot is stored under"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a snapshot write is attempted"
    )


class BudgetDefaults(BaseSettings):
    """Settings used to seed a brand new ledger."""

    model_config = SettingsConfigDict(
        env_prefix="SPENDWISE_DEFAULTS_",
        extra="ignore"
    )

    savings_goal: Decimal = Field(
        default=Decimal("5000"),
        ge=0,
        description="Initial savings goal"
    )
    savings_goal_type: Literal["daily", "monthly", "yearly"] = Field(
        default="monthly",
        description="Period the savings goal is expressed in"
    )
    currency: str = Field(
        default="THB",
        min_length=1,
        max_length=10,
        description="Currency label shown next to amounts (never converted)"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPENDWISE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )
    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone for the system clock (local time if unset)"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept standard logging level names."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Only accept timezone names the zone database knows."""
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v


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
    def defaults(self) -> BudgetDefaults:
        return BudgetDefaults()

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

    Returns a dict of {setting_name: is_valid}, plus a
    `<name>_error` entry for every group that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "defaults", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
