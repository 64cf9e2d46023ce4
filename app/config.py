"""Application configuration settings."""
from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Runtime toggles -----------------------------------------------------
# Environnement d'exécution: "dev" | "test" | "staging" | "prod"
ENV = os.getenv("ORGDESK_ENV", "dev").lower()

# Scopes reconnus
API_SCOPES = {"member", "support", "admin"}


class Settings(BaseSettings):
    """Environment configuration for the Orgdesk audit service."""

    app_env: str = ENV
    database_url: str = "sqlite:///orgdesk.db"
    SECRET_KEY: str = "change-me"
    LOG_LEVEL: str = "INFO"
    ALLOW_DB_CREATE_ALL: bool = False
    CORS_ALLOW_ORIGINS: list[str] = [
        "https://orgdesk.app",
        "https://app.orgdesk.app",
        "http://localhost:5173",
    ]
    SENTRY_DSN: str | None = None
    PROMETHEUS_ENABLED: bool = True

    # --- Audit logs ------------------------------------------------------
    AUDIT_LOG_DEFAULT_PAGE_SIZE: int = Field(default=20, ge=1)
    AUDIT_LOG_MAX_PAGE_SIZE: int = Field(default=200, ge=1)
    AUDIT_STATS_TOP_ACTIONS: int = Field(default=10, ge=1)
    AUDIT_STATS_TREND_DAYS: int = Field(default=7, ge=1)
    AUDIT_RETENTION_MIN_DAYS: int = Field(default=7, ge=1)
    AUDIT_RETENTION_MAX_DAYS: int = Field(default=365, ge=1)
    AUDIT_RETENTION_DEFAULT_DAYS: int = Field(default=30, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", env_file_encoding="utf-8"
    )

    @field_validator("SENTRY_DSN")
    @classmethod
    def _strip_empty_dsn(cls, value: str | None) -> str | None:
        """Normalise empty DSNs to ``None`` so Sentry stays disabled."""

        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None


class AppInfo(BaseModel):
    name: str = "orgdesk-audit"
    version: str = "0.1.0"


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return settings


__all__ = [
    "ENV",
    "API_SCOPES",
    "Settings",
    "AppInfo",
    "settings",
    "get_settings",
]
