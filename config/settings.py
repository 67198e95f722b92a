"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interviews.db")
    PROVIDER_CONFIG_PATH: str = Field(default="app_config.json")

    GENERATION_TIMEOUT_S: float = Field(default=30.0, gt=0)
    EVALUATION_TIMEOUT_S: float = Field(default=30.0, gt=0)
    SUMMARY_TIMEOUT_S: float = Field(default=30.0, gt=0)
    GENERATION_GUARD_TIMEOUT_S: float = Field(default=35.0, gt=0)

    TICK_SECONDS: float = Field(default=1.0, gt=0)
    DEFAULT_ROLE_CONTEXT: str = "Full Stack Developer (React/Node.js)"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
