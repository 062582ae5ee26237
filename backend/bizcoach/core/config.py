from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_anthropic_models() -> dict[str, list[str]]:
    return {
        # Most reliable first, then older generations as fallback
        "primary_coach": [
            "claude-sonnet-4-5",
            "claude-sonnet-4-20250514",
            "claude-3-5-haiku-20241022",
        ],
        "weekly_coaching": ["claude-sonnet-4-5"],
        "reports": ["claude-sonnet-4-5"],
    }


def _default_openai_models() -> dict[str, list[str]]:
    return {
        "primary_coach": ["gpt-4o", "gpt-4o-mini"],
        "weekly_coaching": ["gpt-4o"],
        "reports": ["gpt-4o"],
    }


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    log_level: str = Field(default="INFO")
    database_url: str = Field(default="sqlite:///./bizcoach.db")
    jwt_secret_key: str = Field(...)
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60 * 24)
    refresh_token_expire_minutes: int = Field(default=60 * 24 * 7)

    ai_provider: Literal["anthropic", "openai"] = Field(default="anthropic")
    anthropic_api_key: str | None = Field(default=None)
    openai_api_key: str | None = Field(default=None)
    anthropic_models: dict[str, list[str]] = Field(default_factory=_default_anthropic_models)
    openai_models: dict[str, list[str]] = Field(default_factory=_default_openai_models)
    coach_max_tokens: int = Field(default=2048)
    model_timeout_seconds: float = Field(default=60.0)

    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
