from __future__ import annotations

import json
import logging
import os
from typing import Any

import openai
from openai import OpenAI

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


class OpenAIModelClient(ModelClient):
    """Chat Completions client; coaching tools are exposed as function tools."""

    def __init__(self, api_key: str | None = None, timeout: float = 60.0):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.client = (
            OpenAI(api_key=self.api_key, timeout=timeout, max_retries=0)
            if self.api_key
            else None
        )

    def _build_messages(self, request: CompletionRequest) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.extend(
            {"role": message.role, "content": message.content} for message in request.history
        )
        return messages

    def _build_tools(self, request: CompletionRequest) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "parameters": tool.get("input_schema", {"type": "object", "properties": {}}),
                },
            }
            for tool in request.tools
        ]

    def complete(self, request: CompletionRequest, model: str) -> Completion:
        if not self.client:
            raise ModelConfigurationError(
                "OPENAI_API_KEY is not set. Add it to the environment to enable the coach."
            )
        params: dict[str, Any] = {
            "model": model,
            "max_tokens": request.max_tokens,
            "messages": self._build_messages(request),
        }
        if request.tools:
            params["tools"] = self._build_tools(request)
        try:
            completion = self.client.chat.completions.create(**params)
        except openai.APIStatusError as exc:
            raise ModelCallError(
                str(exc),
                kind=classify_status(exc.status_code, str(exc)),
                status_code=exc.status_code,
                model=model,
            ) from exc
        except openai.APIConnectionError as exc:
            raise ModelCallError(
                str(exc) or "Connection to OpenAI failed",
                kind=ModelErrorKind.UNAVAILABLE,
                model=model,
            ) from exc

        message = completion.choices[0].message if completion.choices else None
        blocks: list[ContentBlock] = []
        if message is not None:
            if message.content:
                blocks.append(TextBlock(text=message.content))
            for tool_call in message.tool_calls or []:
                blocks.append(
                    ToolCall(
                        name=tool_call.function.name,
                        input=_parse_arguments(tool_call.function.arguments),
                    )
                )
        usage = completion.usage
        return Completion(
            blocks=blocks,
            usage=Usage(
                input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            ),
            model=completion.model or model,
        )


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    try:
        parsed = json.loads(raw or "{}")
    except json.JSONDecodeError:
        logger.warning(f"Discarding unparseable tool arguments: {raw!r}")
        return {}
    return parsed if isinstance(parsed, dict) else {}
