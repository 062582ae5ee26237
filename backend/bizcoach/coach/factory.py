from functools import lru_cache

from bizcoach.coach.adapter import ModelClient
from bizcoach.coach.anthropic_adapter import AnthropicModelClient
from bizcoach.coach.openai_adapter import OpenAIModelClient
from bizcoach.core.config import get_settings


@lru_cache
def get_model_client() -> ModelClient:
    settings = get_settings()
    if settings.ai_provider == "openai":
        return OpenAIModelClient(
            api_key=settings.openai_api_key, timeout=settings.model_timeout_seconds
        )
    return AnthropicModelClient(
        api_key=settings.anthropic_api_key, timeout=settings.model_timeout_seconds
    )


def get_model_priority(name: str = "primary_coach") -> list[str]:
    """Candidate models for a use case, most preferred first."""
    settings = get_settings()
    priorities = (
        settings.openai_models if settings.ai_provider == "openai" else settings.anthropic_models
    )
    return list(priorities.get(name) or priorities.get("primary_coach") or [])
