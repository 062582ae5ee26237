from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, Union


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ToolCall:
    name: str
    input: dict[str, Any] = field(default_factory=dict)


ContentBlock = Union[TextBlock, ToolCall]


@dataclass(frozen=True)
class HistoryMessage:
    role: Literal["user", "assistant"]
    content: str


@dataclass(frozen=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class CompletionRequest:
    system_prompt: str | None
    history: list[HistoryMessage]
    tools: list[dict[str, Any]] = field(default_factory=list)
    max_tokens: int = 2048


@dataclass(frozen=True)
class Completion:
    blocks: list[ContentBlock]
    usage: Usage = field(default_factory=Usage)
    model: str = ""

    def to_payload(self) -> list[dict[str, Any]]:
        payload: list[dict[str, Any]] = []
        for block in self.blocks:
            if isinstance(block, TextBlock):
                payload.append({"type": "text", "text": block.text})
            else:
                payload.append({"type": "tool_use", "name": block.name, "input": block.input})
        return payload


class ModelClient(ABC):
    """Interface for generative model providers."""

    @abstractmethod
    def complete(self, request: CompletionRequest, model: str) -> Completion:
        """Run one completion against ``model``.

        Implementations raise ``ModelCallError`` with a classified ``kind``
        so the fallback layer can decide whether another model is worth trying.
        """
