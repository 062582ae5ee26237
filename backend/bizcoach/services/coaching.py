"""Persistence for coaching sessions.

Records are the only durable copy of a conversation. ``restore_state`` must
accept rows written before multi-coach support, where coach type, style,
stage, business profile and plan are all missing.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from bizcoach.coach.errors import (
    PreconditionError,
    SessionAccessError,
    SessionConflictError,
    SessionNotFoundError,
)
from bizcoach.coach.state import (
    Artifact,
    CoachingState,
    OutlineArtifact,
    PlanArtifact,
    derive_status,
)
from bizcoach.models.coaching_session import (
    CoachingSession,
    CoachingStage,
    CoachingStyle,
    CoachType,
)
from bizcoach.models.project import Project, ProjectStatus
from bizcoach.schemas.coaching import (
    BusinessPlan,
    BusinessProfile,
    CoachMessage,
    ProjectContext,
    ProjectOutline,
)
from bizcoach.services.projects import DEFAULT_PROJECT_NAME, create_project

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)
M = TypeVar("M", bound=BaseModel)


def create_session(db: Session, *, user_id: str, state: CoachingState) -> CoachingSession:
    record = CoachingSession(id=state.session_id, user_id=user_id, **snapshot_state(state))
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"Created coaching session {record.id} for user {user_id}")
    return record


def get_session(db: Session, session_id: str) -> CoachingSession | None:
    return db.query(CoachingSession).filter(CoachingSession.id == session_id).first()


def get_owned_session(db: Session, session_id: str, user_id: str) -> CoachingSession:
    record = get_session(db, session_id)
    if record is None:
        raise SessionNotFoundError("Session not found")
    if record.user_id != user_id:
        raise SessionAccessError("Session belongs to another user")
    return record


def list_user_sessions(db: Session, user_id: str) -> list[CoachingSession]:
    return (
        db.query(CoachingSession)
        .filter(CoachingSession.user_id == user_id)
        .order_by(CoachingSession.updated_at.desc())
        .all()
    )


def update_session(db: Session, record: CoachingSession, **fields: Any) -> CoachingSession:
    """Write only ``fields`` to the record.

    The version column makes the UPDATE conditional on the version that was
    loaded; a concurrent writer turns it into ``SessionConflictError``.
    """
    for key, value in fields.items():
        if not hasattr(CoachingSession, key):
            raise AttributeError(f"CoachingSession has no field {key!r}")
        setattr(record, key, value)
    record.updated_at = datetime.utcnow()
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.warning(f"Concurrent update rejected for coaching session {record.id}")
        raise SessionConflictError(
            "Session was modified by another request. Reload and try again."
        ) from exc
    db.refresh(record)
    return record


def _enum_or_default(enum_cls: type[E], raw: str | None, default: E) -> E:
    if not raw:
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} {raw!r} in stored session, using {default.value}")
        return default


def _load(model: type[M], raw: dict[str, Any] | None, session_id: str) -> M | None:
    if not raw:
        return None
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            f"Discarding unreadable {model.__name__} on session {session_id}: "
            f"{exc.error_count()} validation errors"
        )
        return None


def _restore_artifact(record: CoachingSession) -> Artifact | None:
    # Records from the plan/outline transition can carry both; the plan is live
    plan = _load(BusinessPlan, record.plan, record.id)
    if plan is not None:
        return PlanArtifact(plan=plan)
    outline = _load(ProjectOutline, record.outline, record.id)
    if outline is not None:
        return OutlineArtifact(
            outline=outline,
            context=_load(ProjectContext, record.extracted_context, record.id),
        )
    return None


def restore_state(record: CoachingSession) -> CoachingState:
    return CoachingState(
        session_id=record.id,
        coach_type=_enum_or_default(CoachType, record.coach_type, CoachType.STRATEGY),
        coaching_style=_enum_or_default(
            CoachingStyle, record.coaching_style, CoachingStyle.MENTOR
        ),
        stage=_enum_or_default(CoachingStage, record.stage, CoachingStage.DISCOVERY),
        messages=[CoachMessage.model_validate(message) for message in record.messages or []],
        business_profile=_load(BusinessProfile, record.business_profile, record.id),
        artifact=_restore_artifact(record),
    )


def _dump(model: BaseModel | None) -> dict[str, Any] | None:
    if model is None:
        return None
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def snapshot_state(state: CoachingState, approved: bool = False) -> dict[str, Any]:
    """The persisted field set for ``state``, status included."""
    return {
        "messages": [
            message.model_dump(mode="json", by_alias=True, exclude_none=True)
            for message in state.messages
        ],
        "coach_type": state.coach_type.value,
        "coaching_style": state.coaching_style.value,
        "stage": state.stage.value,
        "business_profile": _dump(state.business_profile),
        "outline": _dump(state.outline),
        "extracted_context": _dump(state.extracted_context),
        "plan": _dump(state.plan),
        "status": derive_status(state, approved).value,
    }


def save_state(db: Session, record: CoachingSession, state: CoachingState) -> CoachingSession:
    return update_session(
        db, record, **snapshot_state(state, approved=record.approved_at is not None)
    )


def approve_session(
    db: Session,
    record: CoachingSession,
    *,
    user_id: str,
    project_name: str | None = None,
) -> Project:
    state = restore_state(record)
    if state.artifact is None:
        raise PreconditionError("No plan or outline to approve")

    state.stage = CoachingStage.SUPPORT
    if isinstance(state.artifact, PlanArtifact):
        artifact_fields = {"plan": _dump(state.plan), "outline": None, "context": None}
    else:
        artifact_fields = {
            "outline": _dump(state.outline),
            "context": _dump(state.extracted_context),
            "plan": None,
        }
    project = create_project(
        db,
        user_id=user_id,
        name=project_name or DEFAULT_PROJECT_NAME,
        status=ProjectStatus.OUTLINE_READY,
        commit=False,
        **artifact_fields,
    )
    # Session and project commit together
    record.approved_at = datetime.utcnow()
    update_session(db, record, **snapshot_state(state, approved=True))
    db.refresh(project)
    logger.info(f"Approved coaching session {record.id} into project {project.id}")
    return project
