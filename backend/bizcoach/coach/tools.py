from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from bizcoach.coach.adapter import ContentBlock, TextBlock, ToolCall
from bizcoach.coach.state import CoachingState, OutlineArtifact, PlanArtifact
from bizcoach.models.coaching_session import CoachingStage
from bizcoach.schemas.coaching import (
    BusinessPlan,
    BusinessProfile,
    CamelModel,
    ProjectContext,
    ProjectOutline,
    QuickReply,
)

logger = logging.getLogger(__name__)


def _string_array(description: str | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "array", "items": {"type": "string"}}
    if description:
        schema["description"] = description
    return schema


def _object(properties: dict[str, Any], required: list[str], **extra: Any) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required, **extra}


_PLAN_SCHEMA = _object(
    {
        "objectives": {
            "type": "array",
            "items": _object(
                {
                    "id": {"type": "string"},
                    "description": {"type": "string"},
                    "measurable": {"type": "string", "description": "How success is measured"},
                },
                ["id", "description", "measurable"],
            ),
            "description": "2-4 clear, measurable objectives aligned with user goals",
        },
        "strategyOverview": {
            "type": "string",
            "description": "1-2 paragraphs summarizing the main approach",
        },
        "phases": {
            "type": "array",
            "items": _object(
                {
                    "name": {"type": "string"},
                    "timeframe": {
                        "type": "string",
                        "description": 'e.g., "0-30 days", "30-90 days", "90+ days"',
                    },
                    "actions": {
                        "type": "array",
                        "items": _object(
                            {
                                "id": {"type": "string"},
                                "description": {"type": "string"},
                                "priority": {"type": "string", "enum": ["high", "medium", "low"]},
                            },
                            ["id", "description", "priority"],
                        ),
                    },
                },
                ["name", "timeframe", "actions"],
            ),
            "description": (
                "3 phases: Foundation (0-30 days), Build & Optimize (30-90 days), "
                "Scale & Refine (90+ days)"
            ),
        },
        "metrics": {
            "type": "array",
            "items": _object(
                {
                    "metric": {"type": "string"},
                    "target": {"type": "string"},
                    "checkpoint": {"type": "string", "description": "When to review"},
                },
                ["metric", "target", "checkpoint"],
            ),
        },
        "risks": {
            "type": "array",
            "items": _object(
                {"risk": {"type": "string"}, "mitigation": {"type": "string"}},
                ["risk", "mitigation"],
            ),
            "description": "3-5 likely obstacles with suggestions to address them",
        },
    },
    ["objectives", "strategyOverview", "phases", "metrics", "risks"],
    description="The strategic business plan",
)

_OUTLINE_SCHEMA = _object(
    {
        "summary": {
            "type": "string",
            "description": "Brief summary of what we are building and why",
        },
        "sections": {
            "type": "array",
            "items": _object(
                {
                    "id": {"type": "string"},
                    "name": {"type": "string"},
                    "purpose": {"type": "string"},
                    "keyElements": _string_array(),
                    "copyGuidance": {"type": "string"},
                    "priority": {
                        "type": "string",
                        "enum": ["must-have", "recommended", "optional"],
                    },
                },
                ["id", "name", "purpose", "keyElements", "priority"],
            ),
        },
        "styleRecommendations": {
            "type": "object",
            "properties": {
                "tone": {"type": "string"},
                "colorSuggestions": _string_array(),
                "layoutStyle": {"type": "string"},
            },
        },
    },
    ["summary", "sections", "styleRecommendations"],
    description="The strategic project outline",
)

COACHING_TOOLS: list[dict[str, Any]] = [
    {
        "name": "offer_quick_replies",
        "description": "Offer the user quick reply buttons for common responses",
        "input_schema": _object(
            {
                "options": {
                    "type": "array",
                    "items": _object(
                        {
                            "label": {"type": "string", "description": "Button text"},
                            "value": {"type": "string", "description": "Value sent when clicked"},
                        },
                        ["label", "value"],
                    ),
                    "description": "Quick reply options (max 6)",
                }
            },
            ["options"],
        ),
    },
    {
        "name": "transition_to_stage",
        "description": "Mark that you are moving to a new stage in the coaching process",
        "input_schema": _object(
            {
                "stage": {
                    "type": "string",
                    "enum": [stage.value for stage in CoachingStage],
                    "description": "The stage you are transitioning to",
                },
                "summary": {
                    "type": "string",
                    "description": "Brief summary of progress made in the previous stage",
                },
            },
            ["stage"],
        ),
    },
    {
        "name": "mark_discovery_complete",
        "description": (
            "Mark that you have gathered sufficient information about a specific discovery area"
        ),
        "input_schema": _object(
            {
                "area": {
                    "type": "string",
                    "description": (
                        "The discovery area (e.g., business_model, audience, revenue, "
                        "bottlenecks, brand_perception, etc.)"
                    ),
                },
                "keyFindings": _string_array("2-3 key insights you learned about this area"),
            },
            ["area", "keyFindings"],
        ),
    },
    {
        "name": "generate_business_plan",
        "description": (
            "Generate a strategic business plan based on the discovery information gathered. "
            "Use this when you have comprehensive information and are ready to create the plan."
        ),
        "input_schema": _object(
            {
                "plan": _PLAN_SCHEMA,
                "businessProfile": {
                    "type": "object",
                    "description": "Summary of business information gathered during discovery",
                    "properties": {
                        "snapshot": {"type": "string"},
                        "goals": _string_array(),
                        "challenges": _string_array(),
                        "offers": _string_array(),
                        "constraints": {"type": "string"},
                    },
                },
            },
            ["plan"],
        ),
    },
    {
        "name": "generate_outline",
        "description": (
            "Generate the project outline when you have enough information. Call this when "
            "ready to present the strategic plan. (Legacy tool for web project coaching)"
        ),
        "input_schema": _object(
            {
                "context": _object(
                    {
                        "projectType": {"type": "string"},
                        "businessName": {"type": "string"},
                        "targetAudience": {"type": "string"},
                        "uniqueValue": {"type": "string"},
                        "primaryGoal": {"type": "string"},
                        "tone": {"type": "string"},
                        "additionalNotes": {"type": "string"},
                    },
                    ["projectType", "targetAudience", "uniqueValue", "primaryGoal", "tone"],
                    description="Extracted context from the conversation",
                ),
                "outline": _OUTLINE_SCHEMA,
            },
            ["context", "outline"],
        ),
    },
]


# Decoded actions


@dataclass(frozen=True)
class OfferQuickReplies:
    options: list[QuickReply]


@dataclass(frozen=True)
class RecordDiscovery:
    area: str
    key_findings: list[str]


@dataclass(frozen=True)
class TransitionStage:
    stage: CoachingStage
    summary: str | None = None


@dataclass(frozen=True)
class GenerateOutline:
    outline: ProjectOutline
    context: ProjectContext


@dataclass(frozen=True)
class GenerateBusinessPlan:
    plan: BusinessPlan
    business_profile: BusinessProfile | None = None


@dataclass(frozen=True)
class UnrecognizedAction:
    name: str
    reason: str


CoachAction = Union[
    OfferQuickReplies,
    RecordDiscovery,
    TransitionStage,
    GenerateOutline,
    GenerateBusinessPlan,
    UnrecognizedAction,
]


class _QuickRepliesInput(CamelModel):
    options: list[QuickReply] = []


class _DiscoveryInput(CamelModel):
    area: str
    key_findings: list[str]


class _TransitionInput(CamelModel):
    stage: CoachingStage
    summary: str | None = None


class _OutlineInput(CamelModel):
    outline: ProjectOutline
    context: ProjectContext


class _PlanInput(CamelModel):
    plan: BusinessPlan
    # Validated on its own so a bad profile never costs the plan
    business_profile: Any = None


_INPUT_MODELS: dict[str, type[BaseModel]] = {
    "offer_quick_replies": _QuickRepliesInput,
    "mark_discovery_complete": _DiscoveryInput,
    "transition_to_stage": _TransitionInput,
    "generate_outline": _OutlineInput,
    "generate_business_plan": _PlanInput,
}

# Structured fields the model sometimes sends JSON-encoded as a string
_NESTED_FIELDS = {"options", "keyFindings", "plan", "businessProfile", "outline", "context"}


def _decode_nested(tool_input: dict[str, Any]) -> dict[str, Any]:
    decoded = dict(tool_input)
    for key in _NESTED_FIELDS.intersection(decoded):
        value = decoded[key]
        if isinstance(value, str):
            try:
                decoded[key] = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                logger.warning(f"Tool field {key!r} is a string that is not valid JSON")
    return decoded


def _optional_profile(raw: Any, tool_name: str) -> BusinessProfile | None:
    if raw is None:
        return None
    try:
        return BusinessProfile.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            f"Ignoring malformed business profile from {tool_name}: "
            f"{exc.error_count()} validation errors"
        )
        return None


def decode_action(call: ToolCall) -> CoachAction:
    """Turn one raw tool call into a typed action. Never raises."""
    input_model = _INPUT_MODELS.get(call.name)
    if input_model is None:
        return UnrecognizedAction(name=call.name, reason="unknown tool")
    try:
        parsed = input_model.model_validate(_decode_nested(call.input or {}))
    except ValidationError as exc:
        return UnrecognizedAction(
            name=call.name, reason=f"invalid input ({exc.error_count()} errors)"
        )

    if isinstance(parsed, _QuickRepliesInput):
        return OfferQuickReplies(options=list(parsed.options))
    if isinstance(parsed, _DiscoveryInput):
        return RecordDiscovery(area=parsed.area, key_findings=list(parsed.key_findings))
    if isinstance(parsed, _TransitionInput):
        return TransitionStage(stage=parsed.stage, summary=parsed.summary or None)
    if isinstance(parsed, _OutlineInput):
        return GenerateOutline(outline=parsed.outline, context=parsed.context)
    if isinstance(parsed, _PlanInput):
        return GenerateBusinessPlan(
            plan=parsed.plan,
            business_profile=_optional_profile(parsed.business_profile, call.name),
        )
    return UnrecognizedAction(name=call.name, reason="unhandled tool")


@dataclass
class TurnResult:
    content: str = ""
    quick_replies: list[QuickReply] | None = None
    outline: ProjectOutline | None = None
    context: ProjectContext | None = None
    plan: BusinessPlan | None = None
    actions: list[CoachAction] = field(default_factory=list)


def apply_action(action: CoachAction, state: CoachingState, result: TurnResult) -> None:
    if isinstance(action, OfferQuickReplies):
        result.quick_replies = action.options
    elif isinstance(action, RecordDiscovery):
        if state.business_profile is None:
            state.business_profile = BusinessProfile()
        # Last write for an area wins
        state.business_profile.extensions[action.area] = action.key_findings
        logger.info(
            f"Marked discovery area complete for session {state.session_id}: "
            f"{action.area} ({len(action.key_findings)} findings)"
        )
    elif isinstance(action, TransitionStage):
        state.stage = action.stage
        logger.info(f"Session {state.session_id} transitioned to stage: {action.stage.value}")
        if action.summary:
            result.content += f"\n\n[Stage transition: {action.stage.value}]"
    elif isinstance(action, GenerateOutline):
        state.artifact = OutlineArtifact(outline=action.outline, context=action.context)
        result.outline = action.outline
        result.context = action.context
    elif isinstance(action, GenerateBusinessPlan):
        state.artifact = PlanArtifact(plan=action.plan)
        if action.business_profile is not None:
            state.business_profile = action.business_profile
        state.stage = CoachingStage.SUPPORT
        result.plan = action.plan
        logger.info(
            f"Generated business plan for session {state.session_id} with "
            f"{len(action.plan.objectives)} objectives, {len(action.plan.phases)} phases"
        )
    else:
        logger.warning(f"Ignoring tool call {action.name!r}: {action.reason}")


def interpret_response(blocks: list[ContentBlock], state: CoachingState) -> TurnResult:
    """Fold one completion's content blocks into a turn result, mutating ``state``.

    Blocks are applied in order, so a stage annotation lands after the text
    that preceded its tool call.
    """
    result = TurnResult()
    for block in blocks:
        if isinstance(block, TextBlock):
            result.content += block.text
        elif isinstance(block, ToolCall):
            action = decode_action(block)
            result.actions.append(action)
            apply_action(action, state, result)
    return result
