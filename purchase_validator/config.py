"""
Configuration settings for the purchase validator.

Uses Pydantic Settings to load environment variables for the validation
endpoint, debounce timing, the HTTP client and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Validation service
    validator_url: Optional[str] = Field(None, alias="VALIDATOR_URL")
    debounce_ms: int = Field(1500, alias="VALIDATOR_DEBOUNCE_MS")
    http_timeout_seconds: float = Field(30.0, alias="VALIDATOR_HTTP_TIMEOUT")
    application_username: Optional[str] = Field(None, alias="APPLICATION_USERNAME")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
