from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from bizcoach.models.project import ProjectStatus
from bizcoach.schemas.coaching import BusinessPlan, ProjectContext, ProjectOutline


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    status: ProjectStatus | None = None
    outline: ProjectOutline | None = None
    context: ProjectContext | None = None
    plan: BusinessPlan | None = None
    brief_generated: bool | None = None


class ProjectPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    status: ProjectStatus
    outline: ProjectOutline | None = None
    context: ProjectContext | None = None
    plan: BusinessPlan | None = None
    brief_generated: bool
    created_at: datetime
    updated_at: datetime


class ApprovalResponse(BaseModel):
    success: bool = True
    project_id: str
    project: ProjectPublic
