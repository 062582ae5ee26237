import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from bizcoach.coach.errors import (
    PreconditionError,
    SessionAccessError,
    SessionConflictError,
    SessionNotFoundError,
)
from bizcoach.coach.state import CoachingState, OutlineArtifact, PlanArtifact, derive_status
from bizcoach.db.base import Base
from bizcoach.models.coaching_session import (
    CoachingSession,
    CoachingStage,
    CoachingStyle,
    CoachType,
    SessionStatus,
)
from bizcoach.models.project import ProjectStatus
from bizcoach.models.user import User
from bizcoach.schemas.coaching import (
    BusinessPlan,
    BusinessProfile,
    CoachMessage,
    ProjectContext,
    ProjectOutline,
    QuickReply,
)
from bizcoach.services import coaching as coaching_service
from tests.fakes import outline_input, plan_input


@pytest.fixture()
def user(db_session) -> User:
    user = User(email="owner@example.com", hashed_password="hashed")
    db_session.add(user)
    db_session.commit()
    return user


def _populated_state() -> CoachingState:
    return CoachingState(
        session_id="session-round-trip",
        coach_type=CoachType.CUSTOMER_EXPERIENCE,
        coaching_style=CoachingStyle.ACCOUNTABILITY_PARTNER,
        stage=CoachingStage.SUPPORT,
        messages=[
            CoachMessage(role="coach", content="Welcome"),
            CoachMessage(role="user", content="We sell courses"),
            CoachMessage(
                role="coach",
                content="Which matters most?",
                quick_replies=[QuickReply(label="Retention", value="retention")],
            ),
        ],
        business_profile=BusinessProfile(
            snapshot="Online courses",
            goals=["Reduce churn"],
            extensions={"onboarding": ["Manual emails"]},
        ),
        artifact=PlanArtifact(plan=BusinessPlan.model_validate(plan_input())),
    )


def test_round_trip_preserves_state(db_session, user):
    state = _populated_state()

    record = coaching_service.create_session(db_session, user_id=user.id, state=state)
    db_session.expire_all()
    restored = coaching_service.restore_state(coaching_service.get_session(db_session, record.id))

    assert restored.session_id == state.session_id
    assert restored.coach_type is state.coach_type
    assert restored.coaching_style is state.coaching_style
    assert restored.stage is state.stage
    assert [(m.role, m.content) for m in restored.messages] == [
        (m.role, m.content) for m in state.messages
    ]
    assert [m.timestamp for m in restored.messages] == [m.timestamp for m in state.messages]
    assert restored.messages[2].quick_replies == state.messages[2].quick_replies
    assert restored.business_profile == state.business_profile
    assert restored.artifact == state.artifact


def test_round_trip_outline_artifact(db_session, user):
    data = outline_input()
    state = CoachingState(
        session_id="session-outline",
        artifact=OutlineArtifact(
            outline=ProjectOutline.model_validate(data["outline"]),
            context=ProjectContext.model_validate(data["context"]),
        ),
    )

    record = coaching_service.create_session(db_session, user_id=user.id, state=state)
    restored = coaching_service.restore_state(record)

    assert restored.artifact == state.artifact
    assert record.plan is None
    assert record.outline["styleRecommendations"]["layoutStyle"] == "single column"


def test_legacy_record_restores_with_defaults(db_session, user):
    record = CoachingSession(
        id="legacy-1",
        user_id=user.id,
        messages=[{"role": "coach", "content": "Hi", "timestamp": "2024-05-01T10:00:00Z"}],
        outline=outline_input()["outline"],
        extracted_context=outline_input()["context"],
        status="outline_ready",
    )
    db_session.add(record)
    db_session.commit()

    state = coaching_service.restore_state(record)

    assert state.coach_type is CoachType.STRATEGY
    assert state.coaching_style is CoachingStyle.MENTOR
    assert state.stage is CoachingStage.DISCOVERY
    assert state.business_profile is None
    assert isinstance(state.artifact, OutlineArtifact)
    assert state.messages[0].content == "Hi"


def test_legacy_profile_areas_fold_into_extensions(db_session, user):
    record = CoachingSession(
        id="legacy-2",
        user_id=user.id,
        messages=[],
        business_profile={"snapshot": "Agency", "audience": ["SaaS founders"], "revenue": "$20k"},
    )
    db_session.add(record)
    db_session.commit()

    profile = coaching_service.restore_state(record).business_profile

    assert profile.snapshot == "Agency"
    assert profile.extensions == {"audience": ["SaaS founders"], "revenue": ["$20k"]}


def test_plan_wins_when_record_has_both_artifacts(db_session, user):
    record = CoachingSession(
        id="legacy-3",
        user_id=user.id,
        messages=[],
        outline=outline_input()["outline"],
        extracted_context=outline_input()["context"],
        plan=plan_input(),
    )
    db_session.add(record)
    db_session.commit()

    state = coaching_service.restore_state(record)

    assert isinstance(state.artifact, PlanArtifact)
    assert coaching_service.snapshot_state(state)["outline"] is None


def test_status_is_projected_from_artifact_and_approval():
    state = CoachingState(session_id="s")
    assert derive_status(state) is SessionStatus.IN_PROGRESS

    state.artifact = PlanArtifact(plan=BusinessPlan.model_validate(plan_input()))
    assert derive_status(state) is SessionStatus.OUTLINE_READY
    assert coaching_service.snapshot_state(state)["status"] == "outline_ready"
    assert derive_status(state, approved=True) is SessionStatus.APPROVED


def test_update_session_writes_only_given_fields(db_session, user):
    record = coaching_service.create_session(
        db_session, user_id=user.id, state=_populated_state()
    )
    before = record.updated_at
    version = record.version

    coaching_service.update_session(db_session, record, coach_type="brand")

    assert record.coach_type == "brand"
    assert record.coaching_style == "accountability_partner"
    assert record.plan is not None
    assert record.updated_at >= before
    assert record.version == version + 1


def test_get_owned_session_distinguishes_missing_from_foreign(db_session, user):
    stranger = User(email="stranger@example.com", hashed_password="hashed")
    db_session.add(stranger)
    db_session.commit()
    record = coaching_service.create_session(
        db_session, user_id=user.id, state=CoachingState(session_id="owned")
    )

    assert coaching_service.get_owned_session(db_session, record.id, user.id) is record
    with pytest.raises(SessionNotFoundError):
        coaching_service.get_owned_session(db_session, "missing", user.id)
    with pytest.raises(SessionAccessError):
        coaching_service.get_owned_session(db_session, record.id, stranger.id)


def test_concurrent_update_raises_conflict(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'sessions.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)

    with factory() as setup:
        owner = User(email="tabs@example.com", hashed_password="hashed")
        setup.add(owner)
        setup.commit()
        coaching_service.create_session(
            setup, user_id=owner.id, state=CoachingState(session_id="shared")
        )

    first, second = factory(), factory()
    try:
        first_record = coaching_service.get_session(first, "shared")
        second_record = coaching_service.get_session(second, "shared")

        coaching_service.update_session(first, first_record, stage="plan_generation")
        with pytest.raises(SessionConflictError):
            coaching_service.update_session(second, second_record, stage="support")
    finally:
        first.close()
        second.close()
        engine.dispose()

    with factory() as check:
        assert coaching_service.get_session(check, "shared").stage == "plan_generation"


def test_approve_requires_artifact(db_session, user):
    record = coaching_service.create_session(
        db_session, user_id=user.id, state=CoachingState(session_id="empty")
    )

    with pytest.raises(PreconditionError, match="No plan or outline to approve"):
        coaching_service.approve_session(db_session, record, user_id=user.id, project_name="X")


def test_approve_plan_creates_project_without_outline(db_session, user):
    record = coaching_service.create_session(
        db_session, user_id=user.id, state=_populated_state()
    )

    project = coaching_service.approve_session(
        db_session, record, user_id=user.id, project_name="Course Growth"
    )

    assert project.name == "Course Growth"
    assert project.status is ProjectStatus.OUTLINE_READY
    assert project.plan["strategyOverview"].startswith("Focus on the retainer")
    assert project.outline is None
    assert record.status == "approved"
    assert record.stage == "support"
    assert record.approved_at is not None


def test_approve_outline_copies_outline_and_context(db_session, user):
    data = outline_input()
    record = coaching_service.create_session(
        db_session,
        user_id=user.id,
        state=CoachingState(
            session_id="outline-approve",
            artifact=OutlineArtifact(
                outline=ProjectOutline.model_validate(data["outline"]),
                context=ProjectContext.model_validate(data["context"]),
            ),
        ),
    )

    project = coaching_service.approve_session(db_session, record, user_id=user.id)

    assert project.name == "New Project"
    assert project.outline["summary"] == data["outline"]["summary"]
    assert project.context["businessName"] == "Bright Bakes"
    assert project.plan is None
