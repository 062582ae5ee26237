from __future__ import annotations

import logging
import os
from typing import Any

import anthropic

from bizcoach.coach.adapter import (
    Completion,
    CompletionRequest,
    ContentBlock,
    ModelClient,
    TextBlock,
    ToolCall,
    Usage,
)
from bizcoach.coach.errors import (
    ModelCallError,
    ModelConfigurationError,
    ModelErrorKind,
    classify_status,
)

logger = logging.getLogger(__name__)


class AnthropicModelClient(ModelClient):
    def __init__(self, api_key: str | None = None, timeout: float = 60.0):
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if self.api_key:
            # The fallback chain is the retry policy, so the SDK must not retry on its own
            self.client = anthropic.Anthropic(
                api_key=self.api_key, timeout=timeout, max_retries=0
            )
        else:
            self.client = None

    def complete(self, request: CompletionRequest, model: str) -> Completion:
        if self.client is None:
            raise ModelConfigurationError(
                "ANTHROPIC_API_KEY is not set. Add it to the environment to enable the coach."
            )
        params: dict[str, Any] = {
            "model": model,
            "max_tokens": request.max_tokens,
            "messages": [
                {"role": message.role, "content": message.content}
                for message in request.history
            ],
        }
        if request.system_prompt:
            params["system"] = request.system_prompt
        if request.tools:
            params["tools"] = request.tools
        try:
            response = self.client.messages.create(**params)
        except anthropic.APIStatusError as exc:
            raise ModelCallError(
                str(exc),
                kind=classify_status(exc.status_code, str(exc)),
                status_code=exc.status_code,
                model=model,
            ) from exc
        except anthropic.APIConnectionError as exc:
            # Includes APITimeoutError
            raise ModelCallError(
                str(exc) or "Connection to Anthropic failed",
                kind=ModelErrorKind.UNAVAILABLE,
                model=model,
            ) from exc
        return Completion(
            blocks=_convert_blocks(response.content),
            usage=Usage(
                input_tokens=getattr(response.usage, "input_tokens", 0) or 0,
                output_tokens=getattr(response.usage, "output_tokens", 0) or 0,
            ),
            model=getattr(response, "model", None) or model,
        )


def _convert_blocks(content: list[Any]) -> list[ContentBlock]:
    blocks: list[ContentBlock] = []
    for block in content:
        block_type = getattr(block, "type", None)
        if block_type == "text":
            blocks.append(TextBlock(text=block.text))
        elif block_type == "tool_use":
            tool_input = block.input if isinstance(block.input, dict) else {}
            blocks.append(ToolCall(name=block.name, input=tool_input))
        else:
            logger.debug(f"Skipping unsupported content block type: {block_type}")
    return blocks
