from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from bizcoach.coach.adapter import CompletionRequest, HistoryMessage, ModelClient
from bizcoach.coach.errors import CoachResponseError, ModelCallError, PreconditionError
from bizcoach.coach.factory import get_model_client, get_model_priority
from bizcoach.coach.model_fallback import FallbackResult, create_message_with_fallback
from bizcoach.coach.prompts import (
    OPENING_MESSAGES,
    build_revision_prompt,
    build_system_prompt,
)
from bizcoach.coach.state import CoachingState, OutlineArtifact
from bizcoach.coach.tools import COACHING_TOOLS, TurnResult, interpret_response
from bizcoach.models.coaching_session import CoachingStage, CoachingStyle, CoachType
from bizcoach.schemas.coaching import (
    BusinessPlan,
    CoachMessage,
    ProjectContext,
    ProjectOutline,
    QuickReply,
)

logger = logging.getLogger(__name__)

# Stored in the history when the model answered with tool calls only
EMPTY_REPLY_PLACEHOLDER = "No response generated"
# Shown to the user in that case
FALLBACK_REPLY = (
    "I apologize, but I encountered an issue processing your message. Please try again."
)


@dataclass(frozen=True)
class CoachReply:
    content: str
    quick_replies: list[QuickReply] | None = None


@dataclass(frozen=True)
class CoachTurn:
    content: str
    stage: CoachingStage
    quick_replies: list[QuickReply] | None = None
    outline: ProjectOutline | None = None
    context: ProjectContext | None = None
    plan: BusinessPlan | None = None
    model: str | None = None


class CoachingAgent:
    """Runs one coaching conversation turn against the model.

    The agent owns ``state`` for the duration of a request. Stage and
    business profile change only through the model's tool calls; the caller
    persists ``state`` once a turn succeeds.
    """

    def __init__(
        self,
        state: CoachingState,
        client: ModelClient | None = None,
        models: Sequence[str] | None = None,
        max_tokens: int = 2048,
    ):
        self.state = state
        self.client = client or get_model_client()
        self.models = list(models) if models is not None else get_model_priority("primary_coach")
        self.max_tokens = max_tokens

    @property
    def system_prompt(self) -> str:
        return build_system_prompt(
            self.state.coach_type,
            self.state.coaching_style,
            self.state.stage,
            self.state.plan,
        )

    def start_session(self) -> CoachReply:
        self.state.stage = CoachingStage.DISCOVERY
        content = OPENING_MESSAGES[self.state.coach_type]
        self.state.messages.append(CoachMessage(role="coach", content=content))
        logger.info(
            f"Started {self.state.coach_type.value} session {self.state.session_id} "
            f"({self.state.coaching_style.value} style)"
        )
        return CoachReply(content=content)

    def chat(self, user_message: str) -> CoachTurn:
        self.state.messages.append(CoachMessage(role="user", content=user_message))
        response = self._complete("Failed to get AI response")
        result = interpret_response(response.completion.blocks, self.state)
        return self._finish_turn(result, response.model)

    def revise(self, feedback: str) -> CoachTurn:
        if not isinstance(self.state.artifact, OutlineArtifact):
            raise PreconditionError("No outline generated yet")
        prompt = build_revision_prompt(self.state.artifact.outline, feedback)
        self.state.messages.append(CoachMessage(role="user", content=prompt))
        response = self._complete("Failed to revise outline")
        result = interpret_response(response.completion.blocks, self.state)
        # The revised outline, or the current one when the model did not regenerate it
        result.outline = self.state.outline
        result.context = self.state.extracted_context
        return self._finish_turn(result, response.model)

    def switch_coach(
        self, coach_type: CoachType, coaching_style: CoachingStyle | None = None
    ) -> None:
        self.state.coach_type = coach_type
        if coaching_style is not None:
            self.state.coaching_style = coaching_style
        logger.info(
            f"Updated coach for session {self.state.session_id}: "
            f"{coach_type.value} ({self.state.coaching_style.value} style)"
        )

    def _history(self) -> list[HistoryMessage]:
        return [
            HistoryMessage(
                role="user" if message.role == "user" else "assistant",
                content=message.content,
            )
            for message in self.state.messages
        ]

    def _complete(self, failure_message: str) -> FallbackResult:
        request = CompletionRequest(
            system_prompt=self.system_prompt,
            history=self._history(),
            tools=COACHING_TOOLS,
            max_tokens=self.max_tokens,
        )
        try:
            response = create_message_with_fallback(self.client, request, self.models)
        except ModelCallError as exc:
            logger.error(
                f"Model call failed for session {self.state.session_id} "
                f"(kind={exc.kind.value}, status={exc.status_code}): {exc.message}"
            )
            raise CoachResponseError(f"{failure_message}: {exc.message}", exc) from exc
        logger.info(
            f"Session {self.state.session_id} answered by {response.model} "
            f"({len(response.completion.blocks)} content blocks)"
        )
        return response

    def _finish_turn(self, result: TurnResult, model: str) -> CoachTurn:
        self.state.messages.append(
            CoachMessage(
                role="coach",
                content=result.content or EMPTY_REPLY_PLACEHOLDER,
                quick_replies=result.quick_replies,
            )
        )
        return CoachTurn(
            content=result.content or FALLBACK_REPLY,
            stage=self.state.stage,
            quick_replies=result.quick_replies,
            outline=result.outline,
            context=result.context,
            plan=result.plan,
            model=model,
        )
