from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment."""

    app_name: str = Field(default="Assessment Portal", validation_alias="APP_NAME")
    environment: str = Field(default="local", validation_alias="APP_ENV")
    version: str = Field(default="0.1.0")

    # Remote REST backend
    api_base_url: str = Field(
        default="http://localhost:3000/api",
        validation_alias="PORTAL_API_URL",
    )
    timeout_seconds: int = Field(default=30, validation_alias="PORTAL_TIMEOUT_SECONDS")

    # Cached session
    session_storage_path: Path = Field(
        default=Path("~/.assessportal/session.json"),
        validation_alias="SESSION_STORAGE_PATH",
    )
    session_key: str = Field(default="user", validation_alias="SESSION_KEY")

    page_size: int = Field(default=4, validation_alias="PAGE_SIZE")
    report_dir: Path = Field(default=Path("."), validation_alias="REPORT_DIR")
    log_level: str = Field(default="WARNING", validation_alias="LOG_LEVEL")

    @property
    def normalized_api_url(self) -> str:
        """Base URL without a trailing slash."""
        return self.api_base_url.rstrip("/")

    @property
    def resolved_session_path(self) -> Path:
        return self.session_storage_path.expanduser()

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()
