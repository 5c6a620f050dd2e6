"""
Profile Config Store - Application Configuration

Patterns Applied:
- Pydantic Settings with SettingsConfigDict
- Environment variable prefix CONFIG_STORE_ for every setting

Anti-Patterns Avoided:
- Hard-coded storage paths and migration defaults scattered across modules
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    CONFIG_STORE_ prefix.
    Example: CONFIG_STORE_STORAGE_BACKEND=file, CONFIG_STORE_STORAGE_DIR=/var/lib/cfg
    """

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8090

    # Application metadata
    service_name: str = "profile-config-store"
    version: str = "0.1.0"
    environment: str = "development"

    # Logging configuration
    log_level: str = "INFO"
    log_json: bool = True

    # Tracing configuration
    tracing_enabled: bool = True
    tracing_console_export: bool = False

    # Persistence
    storage_backend: Literal["memory", "file"] = "file"
    storage_dir: str = "./data/config_store"
    storage_key: str = "profile_config_store_document"

    # Legacy global state (read-only, consumed by migrations)
    legacy_state_file: str | None = None
    legacy_rate_limit_key: str = "rate_limit_seconds"

    # Rate limit inheritance
    default_rate_limit_seconds: int = Field(default=5, ge=0)
    fresh_install_rate_limit_seconds: int = Field(default=0, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="CONFIG_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings instance with values from environment
    """
    return Settings()
