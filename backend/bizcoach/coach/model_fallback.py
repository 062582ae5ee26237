"""Try a ranked list of models until one answers.

Availability problems (unknown model, rate limit, 503, timeouts) move on to
the next candidate. Authentication failures and generic server errors stop
the chain: a different model cannot fix them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from bizcoach.coach.adapter import Completion, CompletionRequest, ModelClient
from bizcoach.coach.errors import AllModelsFailedError, ModelCallError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FallbackResult:
    completion: Completion
    model: str


def call_with_model_fallback(
    call_fn: Callable[[str], T], models: Sequence[str]
) -> tuple[T, str]:
    attempts: list[tuple[str, Exception]] = []
    for model in models:
        logger.info(f"[Model Fallback] Attempting model: {model}")
        try:
            result = call_fn(model)
        except ModelCallError as exc:
            attempts.append((model, exc))
            logger.warning(
                f"[Model Fallback] Model {model} failed "
                f"(kind={exc.kind.value}, status={exc.status_code}): {exc.message}"
            )
            if not exc.retryable:
                logger.error(
                    f"[Model Fallback] {exc.kind.value} error ({exc.status_code}), stopping fallback"
                )
                raise
            continue
        logger.info(f"[Model Fallback] Successfully used model: {model}")
        return result, model

    raise AllModelsFailedError(attempts)


def create_message_with_fallback(
    client: ModelClient, request: CompletionRequest, models: Sequence[str]
) -> FallbackResult:
    completion, model = call_with_model_fallback(
        lambda candidate: client.complete(request, candidate), models
    )
    return FallbackResult(completion=completion, model=model)
