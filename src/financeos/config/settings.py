"""Configuration settings for financeos."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_db_path() -> str:
    return str(Path.home() / ".financeos" / "financeos.db")


class Settings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Persistence
    db_path: str = Field(default_factory=_default_db_path, validation_alias="FINANCEOS_DB_PATH")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING", validation_alias="FINANCEOS_LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="FINANCEOS_LOG_FORMAT"
    )

    # Cache
    redis_url: Optional[str] = Field(default=None, validation_alias="FINANCEOS_REDIS_URL")
    timeline_ttl: int = Field(default=3600, validation_alias="FINANCEOS_TIMELINE_TTL")
    simulation_ttl: int = Field(default=604800, validation_alias="FINANCEOS_SIMULATION_TTL")

    # Simulator
    google_api_key: Optional[SecretStr] = Field(default=None, validation_alias="GOOGLE_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="FINANCEOS_GEMINI_MODEL")
    llm_timeout: float = Field(default=30.0, validation_alias="FINANCEOS_LLM_TIMEOUT")
    lookback_months: int = Field(default=6, ge=1, validation_alias="FINANCEOS_LOOKBACK_MONTHS")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
