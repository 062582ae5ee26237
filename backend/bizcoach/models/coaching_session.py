from datetime import datetime
from enum import Enum as PyEnum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bizcoach.db.base import Base
from bizcoach.models.user import new_id


class CoachType(str, PyEnum):
    STRATEGY = "strategy"
    BRAND = "brand"
    MARKETING = "marketing"
    LEADERSHIP = "leadership"
    CUSTOMER_EXPERIENCE = "customer_experience"


class CoachingStyle(str, PyEnum):
    MENTOR = "mentor"
    REALIST = "realist"
    STRATEGIST = "strategist"
    ACCOUNTABILITY_PARTNER = "accountability_partner"


class CoachingStage(str, PyEnum):
    DISCOVERY = "discovery"
    PLAN_GENERATION = "plan_generation"
    SUPPORT = "support"


class SessionStatus(str, PyEnum):
    IN_PROGRESS = "in_progress"
    OUTLINE_READY = "outline_ready"
    APPROVED = "approved"


class CoachingSession(Base):
    """Durable record of one coaching conversation.

    coach_type, coaching_style, stage, business_profile and plan are nullable:
    sessions created before multi-coach support never had them.
    """

    __tablename__ = "coaching_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    messages: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    coach_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    coaching_style: Mapped[str | None] = mapped_column(String(32), nullable=True)
    stage: Mapped[str | None] = mapped_column(String(32), nullable=True)
    business_profile: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    outline: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    extracted_context: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    plan: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=SessionStatus.IN_PROGRESS.value
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    __mapper_args__ = {"version_id_col": version}

    user = relationship("User", back_populates="coaching_sessions")
