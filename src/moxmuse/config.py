"""
MoxMuse - Configuration and settings.

Everything is read from the environment (or .env). Only the generation
service URL has no usable default.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    moxmuse_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Remote deck generation service
    generation_service_url: str = "http://localhost:8080"
    generation_api_key: str | None = None
    generation_timeout_seconds: float = 60.0

    # Retry policy
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 2.0
    retry_backoff_multiplier: float = 2.0
    retry_max_delay_seconds: float = 10.0
    auto_retry_limit: int = 2

    # Phase pacing
    analyze_delay_seconds: float = 0.8
    finalize_delay_seconds: float = 0.5

    # Wizard persistence
    wizard_storage_key: str = "deck-wizard-state"
    wizard_storage_backend: Literal["memory", "file", "supabase"] = "memory"
    wizard_storage_dir: str = ".moxmuse/sessions"

    # Supabase (only for the supabase storage backend)
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None

    @property
    def is_development(self) -> bool:
        return self.moxmuse_env == "development"

    @property
    def is_production(self) -> bool:
        return self.moxmuse_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience singleton - lazy loaded
class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: Settings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
