"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "stockflow.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class FulfillmentSettings(BaseSettings):
    """Ledger, batching and confirmation configuration."""

    model_config = SettingsConfigDict(env_prefix="FULFILLMENT_")

    # Canonical warehouse unit holding real stock for regular materials
    warehouse_unit_id: str = "warehouse-central"

    # Daily identity codes
    daily_code_secret: str = "change-me"
    daily_code_timezone: str = "UTC"
    daily_code_length: int = 6

    # Projection defaults
    default_minimum_quantity: float = 0.0

    # Batches
    scan_code_prefix: str = "DEL"
    scan_code_length: int = 8

    # Persistence retry (initial attempt + retries)
    persistence_retry_attempts: int = 2

    # Re-derive every stock row from the ledger before serving
    rebuild_stock_on_startup: bool = False

    @field_validator("daily_code_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("daily_code_length")
    @classmethod
    def validate_code_length(cls, v: int) -> int:
        if not 4 <= v <= 12:
            raise ValueError("daily_code_length must be between 4 and 12")
        return v


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Stockflow Fulfillment Service"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    fulfillment: FulfillmentSettings = Field(default_factory=FulfillmentSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
