"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Stock ledger and approval workflow configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    approver_roles: list[str] = ["manager", "admin"]
    admin_role: str = "admin"

    # Lock acquisition on location cost-state
    lock_timeout: float = 5.0

    # Retry settings for lock conflicts
    max_retries: int = 3
    retry_delay: float = 0.05
    retry_multiplier: float = 2.0

    # Daily stock report
    max_report_days: int = 366
    continuity_tolerance: float = 1e-6

    @field_validator("approver_roles")
    @classmethod
    def normalize_roles(cls, v: list[str]) -> list[str]:
        return [role.strip().lower() for role in v if role.strip()]


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: Literal["sqlite", "memory"] = "sqlite"
    data_dir: Path = Path("data")
    db_name: str = "ledger.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 5000  # ms
    acquire_timeout: float = 30.0  # seconds waiting for a pooled connection

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class CacheSettings(BaseSettings):
    """Cache configuration."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    location_state_enabled: bool = True
    location_state_max_entries: int = 10000


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Paddy Ledger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)


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
