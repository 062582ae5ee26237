import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from bizcoach.api import deps
from bizcoach.coach.adapter import CompletionRequest, HistoryMessage, ModelClient
from bizcoach.coach.errors import ModelCallError, ModelConfigurationError
from bizcoach.coach.factory import get_model_client, get_model_priority
from bizcoach.coach.model_fallback import create_message_with_fallback
from bizcoach.models.user import User
from bizcoach.schemas.coaching import AICoachRequest, AICoachResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            block.get("text", "")
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        )
    return ""


def _history(messages: list[dict[str, Any]]) -> list[HistoryMessage]:
    history: list[HistoryMessage] = []
    for message in messages:
        role = message.get("role")
        if role not in ("user", "assistant"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Each message needs a role of 'user' or 'assistant'",
            )
        history.append(HistoryMessage(role=role, content=_message_text(message.get("content"))))
    return history


@router.post("", response_model=AICoachResponse)
def ai_coach(
    payload: AICoachRequest,
    current_user: User = Depends(deps.get_current_user),
    client: ModelClient = Depends(get_model_client),
) -> AICoachResponse:
    """Raw completion through the primary-coach model chain."""
    request = CompletionRequest(
        system_prompt=payload.system,
        history=_history(payload.messages),
        tools=payload.tools or [],
        max_tokens=payload.max_tokens,
    )
    try:
        result = create_message_with_fallback(client, request, get_model_priority("primary_coach"))
    except ModelCallError as exc:
        logger.error(f"AI coach request failed for user {current_user.id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="AI model unavailable. Please try again in a moment.",
        ) from exc
    except ModelConfigurationError as exc:
        logger.error(f"Model service is not configured: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="AI service configuration error. Please contact support.",
        ) from exc
    usage = result.completion.usage
    return AICoachResponse(
        response=result.completion.to_payload(),
        model=result.model,
        usage={"input_tokens": usage.input_tokens, "output_tokens": usage.output_tokens},
    )
