"""Centralized configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide settings sourced from .env / environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────────────
    contactbook_env: str = "development"
    contactbook_log_level: str = "INFO"

    # ── Contacts store ───────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///data/contacts.db"
    database_echo: bool = False

    # ── Permissions ──────────────────────────────────────────────────
    contacts_prompt_permissions: bool = True

    # ── Derived ──────────────────────────────────────────────────────
    @property
    def data_dir(self) -> Path:
        """Return the data directory, creating it if needed."""
        path = Path("data")
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def is_production(self) -> bool:
        return self.contactbook_env == "production"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
