import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from bizcoach.api import deps
from bizcoach.coach.adapter import ModelClient
from bizcoach.coach.agent import CoachingAgent, CoachTurn
from bizcoach.coach.errors import (
    CoachResponseError,
    ModelConfigurationError,
    PreconditionError,
    SessionAccessError,
    SessionConflictError,
    SessionNotFoundError,
)
from bizcoach.coach.factory import get_model_client
from bizcoach.coach.prompts import COACH_NAMES
from bizcoach.coach.state import CoachingState, derive_status
from bizcoach.core.config import get_settings
from bizcoach.db.session import get_db
from bizcoach.models.coaching_session import CoachingSession
from bizcoach.models.user import User, new_id
from bizcoach.schemas.coaching import (
    ApproveRequest,
    CoachChatRequest,
    CoachingSessionPublic,
    CoachingSessionSummary,
    CoachingStartRequest,
    CoachingStartResponse,
    CoachReplyPublic,
    CoachReviseRequest,
    CoachTurnResponse,
    SwitchCoachRequest,
    SwitchCoachResponse,
)
from bizcoach.schemas.project import ApprovalResponse, ProjectPublic
from bizcoach.services import coaching as coaching_service

logger = logging.getLogger(__name__)

router = APIRouter()

MODEL_UNAVAILABLE_DETAIL = "AI model unavailable. Please try again in a moment."


def _get_session_or_404(db: Session, session_id: str, user: User) -> CoachingSession:
    try:
        return coaching_service.get_owned_session(db, session_id, user.id)
    except SessionNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        ) from exc
    except SessionAccessError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden"
        ) from exc


def _agent_for(state: CoachingState, client: ModelClient) -> CoachingAgent:
    return CoachingAgent(state, client=client, max_tokens=get_settings().coach_max_tokens)


def _run_turn(agent: CoachingAgent, action, *args) -> CoachTurn:
    try:
        return action(*args)
    except PreconditionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except CoachResponseError as exc:
        logger.error(f"Coaching turn failed for session {agent.state.session_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=MODEL_UNAVAILABLE_DETAIL
        ) from exc
    except ModelConfigurationError as exc:
        logger.error(f"Model service is not configured: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="AI service configuration error. Please contact support.",
        ) from exc


def _conflict(exc: SessionConflictError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _turn_response(turn: CoachTurn) -> CoachTurnResponse:
    return CoachTurnResponse(
        content=turn.content,
        quick_replies=turn.quick_replies,
        outline=turn.outline,
        context=turn.context,
        plan=turn.plan,
        stage=turn.stage,
    )


def _summary_fields(record: CoachingSession, state: CoachingState) -> dict:
    return {
        "id": record.id,
        "coach_type": state.coach_type,
        "coaching_style": state.coaching_style,
        "stage": state.stage,
        "status": derive_status(state, approved=record.approved_at is not None),
        "message_count": len(state.messages),
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


@router.post("/start", response_model=CoachingStartResponse, status_code=status.HTTP_201_CREATED)
def start_coaching(
    payload: CoachingStartRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
    client: ModelClient = Depends(get_model_client),
) -> CoachingStartResponse:
    state = CoachingState(
        session_id=new_id(),
        coach_type=payload.coach_type,
        coaching_style=payload.coaching_style,
    )
    opening = _agent_for(state, client).start_session()
    coaching_service.create_session(db, user_id=current_user.id, state=state)
    return CoachingStartResponse(
        session_id=state.session_id,
        message=CoachReplyPublic(content=opening.content, quick_replies=opening.quick_replies),
        stage=state.stage,
        coach_type=state.coach_type,
        coaching_style=state.coaching_style,
    )


@router.get("/", response_model=list[CoachingSessionSummary])
def list_coaching_sessions(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> list[CoachingSessionSummary]:
    records = coaching_service.list_user_sessions(db, current_user.id)
    return [
        CoachingSessionSummary(**_summary_fields(record, coaching_service.restore_state(record)))
        for record in records
    ]


@router.get("/{session_id}", response_model=CoachingSessionPublic)
def get_coaching_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> CoachingSessionPublic:
    record = _get_session_or_404(db, session_id, current_user)
    state = coaching_service.restore_state(record)
    return CoachingSessionPublic(
        **_summary_fields(record, state),
        user_id=record.user_id,
        messages=state.messages,
        business_profile=state.business_profile,
        outline=state.outline,
        extracted_context=state.extracted_context,
        plan=state.plan,
    )


@router.post("/{session_id}/chat", response_model=CoachTurnResponse)
def chat(
    session_id: str,
    payload: CoachChatRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
    client: ModelClient = Depends(get_model_client),
) -> CoachTurnResponse:
    record = _get_session_or_404(db, session_id, current_user)
    agent = _agent_for(coaching_service.restore_state(record), client)
    # A failed turn raises before anything is written
    turn = _run_turn(agent, agent.chat, payload.message)
    try:
        coaching_service.save_state(db, record, agent.state)
    except SessionConflictError as exc:
        raise _conflict(exc) from exc
    return _turn_response(turn)


@router.post("/{session_id}/revise", response_model=CoachTurnResponse)
def revise_outline(
    session_id: str,
    payload: CoachReviseRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
    client: ModelClient = Depends(get_model_client),
) -> CoachTurnResponse:
    record = _get_session_or_404(db, session_id, current_user)
    agent = _agent_for(coaching_service.restore_state(record), client)
    turn = _run_turn(agent, agent.revise, payload.feedback)
    try:
        coaching_service.save_state(db, record, agent.state)
    except SessionConflictError as exc:
        raise _conflict(exc) from exc
    return _turn_response(turn)


@router.post("/{session_id}/switch-coach", response_model=SwitchCoachResponse)
def switch_coach(
    session_id: str,
    payload: SwitchCoachRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
    client: ModelClient = Depends(get_model_client),
) -> SwitchCoachResponse:
    record = _get_session_or_404(db, session_id, current_user)
    agent = _agent_for(coaching_service.restore_state(record), client)
    agent.switch_coach(payload.coach_type, payload.coaching_style)
    try:
        coaching_service.update_session(
            db,
            record,
            coach_type=agent.state.coach_type.value,
            coaching_style=agent.state.coaching_style.value,
        )
    except SessionConflictError as exc:
        raise _conflict(exc) from exc
    return SwitchCoachResponse(
        coach_type=agent.state.coach_type,
        coaching_style=agent.state.coaching_style,
        message=f"Switched to {COACH_NAMES[agent.state.coach_type]} coach",
    )


@router.post("/{session_id}/approve", response_model=ApprovalResponse)
def approve(
    session_id: str,
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> ApprovalResponse:
    record = _get_session_or_404(db, session_id, current_user)
    try:
        project = coaching_service.approve_session(
            db, record, user_id=current_user.id, project_name=payload.project_name
        )
    except PreconditionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SessionConflictError as exc:
        raise _conflict(exc) from exc
    return ApprovalResponse(project_id=project.id, project=ProjectPublic.model_validate(project))
