from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from bizcoach.models.coaching_session import (
    CoachingStage,
    CoachingStyle,
    CoachType,
    SessionStatus,
)


class CamelModel(BaseModel):
    """Artifacts keep the camelCase keys used by the model's tool schemas."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuickReply(CamelModel):
    label: str
    value: str


class CoachMessage(CamelModel):
    role: Literal["user", "coach"]
    content: str
    quick_replies: list[QuickReply] | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# Legacy web-project outline


class ProjectContext(CamelModel):
    project_type: str
    business_name: str | None = None
    target_audience: str
    unique_value: str
    primary_goal: str
    tone: str
    additional_notes: str | None = None


class ProjectSection(CamelModel):
    id: str
    name: str
    purpose: str
    key_elements: list[str] = Field(default_factory=list)
    copy_guidance: str | None = None
    priority: Literal["must-have", "recommended", "optional"] = "recommended"

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class StyleRecommendations(CamelModel):
    tone: str = ""
    color_suggestions: list[str] = Field(default_factory=list)
    layout_style: str = ""


class ProjectOutline(CamelModel):
    summary: str
    sections: list[ProjectSection] = Field(default_factory=list)
    style_recommendations: StyleRecommendations = Field(default_factory=StyleRecommendations)


# Business plan


class PlanObjective(CamelModel):
    id: str
    description: str
    measurable: str


class PlanAction(CamelModel):
    id: str
    description: str
    priority: Literal["high", "medium", "low"] = "medium"

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class PlanPhase(CamelModel):
    name: str
    timeframe: str
    actions: list[PlanAction] = Field(default_factory=list)


class PlanMetric(CamelModel):
    metric: str
    target: str
    checkpoint: str


class PlanRisk(CamelModel):
    risk: str
    mitigation: str


class BusinessPlan(CamelModel):
    strategy_overview: str
    objectives: list[PlanObjective] = Field(default_factory=list)
    phases: list[PlanPhase] = Field(default_factory=list)
    metrics: list[PlanMetric] = Field(default_factory=list)
    risks: list[PlanRisk] = Field(default_factory=list)


_PROFILE_FIELDS = {"snapshot", "goals", "challenges", "offers", "constraints", "extensions"}


class BusinessProfile(CamelModel):
    """What discovery has learned about the business.

    Fixed descriptive fields plus ``extensions``: discovery findings keyed by
    area name (``audience``, ``revenue``, ``brand_perception``...).
    """

    snapshot: str = ""
    goals: list[str] = Field(default_factory=list)
    challenges: list[str] = Field(default_factory=list)
    offers: list[str] = Field(default_factory=list)
    constraints: str = ""
    extensions: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("goals", "challenges", "offers", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value

    @field_validator("snapshot", "constraints", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, list):
            return "; ".join(str(item) for item in value)
        return value

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_areas(cls, data: Any) -> Any:
        # Older records kept each discovery area as a top-level key
        if not isinstance(data, dict):
            return data
        extra = {key: value for key, value in data.items() if key not in _PROFILE_FIELDS}
        if not extra:
            return data
        folded = {key: value for key, value in data.items() if key in _PROFILE_FIELDS}
        extensions = dict(folded.get("extensions") or {})
        for area, findings in extra.items():
            if isinstance(findings, list):
                extensions[area] = [str(item) for item in findings]
            elif findings:
                extensions[area] = [str(findings)]
        folded["extensions"] = extensions
        return folded


# API payloads


class CoachingStartRequest(BaseModel):
    coach_type: CoachType = CoachType.STRATEGY
    coaching_style: CoachingStyle = CoachingStyle.MENTOR


class CoachReplyPublic(BaseModel):
    role: Literal["coach"] = "coach"
    content: str
    quick_replies: list[QuickReply] | None = None


class CoachingStartResponse(BaseModel):
    session_id: str
    message: CoachReplyPublic
    stage: CoachingStage
    coach_type: CoachType
    coaching_style: CoachingStyle


class CoachChatRequest(BaseModel):
    message: str = Field(..., min_length=1)


class CoachReviseRequest(BaseModel):
    feedback: str = Field(..., min_length=1)


class CoachTurnResponse(BaseModel):
    role: Literal["coach"] = "coach"
    content: str
    quick_replies: list[QuickReply] | None = None
    outline: ProjectOutline | None = None
    context: ProjectContext | None = None
    plan: BusinessPlan | None = None
    stage: CoachingStage


class SwitchCoachRequest(BaseModel):
    coach_type: CoachType
    coaching_style: CoachingStyle | None = None


class SwitchCoachResponse(BaseModel):
    success: bool = True
    coach_type: CoachType
    coaching_style: CoachingStyle
    message: str


class ApproveRequest(BaseModel):
    project_name: str | None = None


class CoachingSessionSummary(BaseModel):
    id: str
    coach_type: CoachType
    coaching_style: CoachingStyle
    stage: CoachingStage
    status: SessionStatus
    message_count: int
    created_at: datetime
    updated_at: datetime


class CoachingSessionPublic(CoachingSessionSummary):
    user_id: str
    messages: list[CoachMessage]
    business_profile: BusinessProfile | None = None
    outline: ProjectOutline | None = None
    extracted_context: ProjectContext | None = None
    plan: BusinessPlan | None = None


class AICoachRequest(BaseModel):
    messages: list[dict[str, Any]] = Field(..., min_length=1)
    system: str | None = None
    tools: list[dict[str, Any]] | None = None
    max_tokens: int = Field(default=2048, ge=1)


class AICoachResponse(BaseModel):
    response: list[dict[str, Any]]
    model: str
    usage: dict[str, int]
