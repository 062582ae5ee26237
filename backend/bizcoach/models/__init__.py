from bizcoach.models.user import User
from bizcoach.models.coaching_session import (
    CoachingSession,
    CoachingStage,
    CoachingStyle,
    CoachType,
    SessionStatus,
)
from bizcoach.models.project import Project, ProjectStatus

__all__ = [
    "User",
    "CoachingSession",
    "CoachingStage",
    "CoachingStyle",
    "CoachType",
    "SessionStatus",
    "Project",
    "ProjectStatus",
]
