"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    LLM_CONFIG_PATH: str = Field(default="app_config.json")

    TURN_LIMIT: int = Field(default=10, ge=1)
    MAX_PROMPT_TOKENS: int = Field(default=8191, ge=1)
    INITIAL_CONTEXT_CHARS: int = Field(default=3000, ge=1)
    FOLLOW_UP_CONTEXT_CHARS: int = Field(default=2500, ge=1)
    HISTORY_TURNS: int = Field(default=10, ge=1)
    FEEDBACK_TURNS: int = Field(default=20, ge=1)
    MIN_ANSWER_CHARS: int = Field(default=10, ge=0)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", validate_assignment=True)


settings = Settings()
