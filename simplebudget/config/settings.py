"""
Configuration Management for SimpleBudget

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here and consumed only by
the orchestrator, the storage backends and the UI. The accounting engine
never reads the environment; it receives what it needs as arguments.
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where and how the ledger document is persisted."""

    model_config = SettingsConfigDict(
        env_prefix="SIMPLEBUDGET_STORAGE_",
        extra="ignore"
    )

    data_dir: str = Field(
        default=".simplebudget",
        description="Directory holding the JSON store"
    )
    storage_key: str = Field(
        default="simpleBudgetData",
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Key the ledger document is stored under"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per write before reporting a persistence error"
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
        pattern="^(DEBUG|INFO|WARNING|ERROR)$",
        description="Minimum level for local logs"
    )

    # History
    history_retention_years: int = Field(
        default=1,
        ge=0,
        le=10,
        description="Previous calendar years of history kept at rollover"
    )

    # Progress bar bands
    progress_warning_pct: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        description="Share of the allowance at which the bar turns amber"
    )
    progress_danger_pct: float = Field(
        default=90.0,
        ge=0.0,
        le=100.0,
        description="Share of the allowance at which the bar turns red"
    )

    # Display
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol shown in front of amounts"
    )
    export_filename_prefix: str = Field(
        default="SimpleBudget",
        description="Prefix of exported file names"
    )

    @model_validator(mode="after")
    def validate_progress_bands(self) -> "AppSettings":
        if self.progress_danger_pct < self.progress_warning_pct:
            raise ValueError("progress_danger_pct must not be below progress_warning_pct")
        return self


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
