from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from bizcoach.models.coaching_session import (
    CoachingStage,
    CoachingStyle,
    CoachType,
    SessionStatus,
)
from bizcoach.schemas.coaching import (
    BusinessPlan,
    BusinessProfile,
    CoachMessage,
    ProjectContext,
    ProjectOutline,
)


@dataclass(frozen=True)
class OutlineArtifact:
    outline: ProjectOutline
    context: ProjectContext | None = None


@dataclass(frozen=True)
class PlanArtifact:
    plan: BusinessPlan


Artifact = Union[OutlineArtifact, PlanArtifact]


@dataclass
class CoachingState:
    """Everything a coaching conversation owns between two requests.

    A session holds at most one artifact: generating a plan replaces an
    outline and vice versa.
    """

    session_id: str
    coach_type: CoachType = CoachType.STRATEGY
    coaching_style: CoachingStyle = CoachingStyle.MENTOR
    stage: CoachingStage = CoachingStage.DISCOVERY
    messages: list[CoachMessage] = field(default_factory=list)
    business_profile: BusinessProfile | None = None
    artifact: Artifact | None = None

    @property
    def outline(self) -> ProjectOutline | None:
        return self.artifact.outline if isinstance(self.artifact, OutlineArtifact) else None

    @property
    def extracted_context(self) -> ProjectContext | None:
        return self.artifact.context if isinstance(self.artifact, OutlineArtifact) else None

    @property
    def plan(self) -> BusinessPlan | None:
        return self.artifact.plan if isinstance(self.artifact, PlanArtifact) else None


def derive_status(state: CoachingState, approved: bool = False) -> SessionStatus:
    if approved:
        return SessionStatus.APPROVED
    if state.artifact is not None:
        return SessionStatus.OUTLINE_READY
    return SessionStatus.IN_PROGRESS
