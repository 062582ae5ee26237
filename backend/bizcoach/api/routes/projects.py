import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from bizcoach.api import deps
from bizcoach.db.session import get_db
from bizcoach.models.project import Project, ProjectStatus
from bizcoach.models.user import User
from bizcoach.schemas.coaching import BusinessPlan, ProjectContext, ProjectOutline
from bizcoach.schemas.project import ProjectCreate, ProjectPublic, ProjectUpdate
from bizcoach.services import brief as brief_service
from bizcoach.services import projects as project_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_project_or_404(db: Session, project_id: str, user: User) -> Project:
    project = project_service.get_project(db, project_id)
    if not project:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Project not found"
        )
    if not project_service.verify_ownership(project, user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return project


@router.get("/", response_model=list[ProjectPublic])
def list_projects(
    search: str | None = None,
    status_filter: ProjectStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> list[ProjectPublic]:
    return project_service.list_user_projects(
        db, current_user.id, search=search, status=status_filter
    )


@router.post("/", response_model=ProjectPublic, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> ProjectPublic:
    return project_service.create_project(db, user_id=current_user.id, name=payload.name)


@router.get("/{project_id}", response_model=ProjectPublic)
def get_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> ProjectPublic:
    return _get_project_or_404(db, project_id, current_user)


@router.put("/{project_id}", response_model=ProjectPublic)
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> ProjectPublic:
    project = _get_project_or_404(db, project_id, current_user)
    # Nested artifacts keep their camelCase keys
    fields = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if "status" in fields:
        fields["status"] = ProjectStatus(fields["status"])
    return project_service.update_project(db, project, **fields)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> None:
    project = _get_project_or_404(db, project_id, current_user)
    project_service.delete_project(db, project)


@router.get("/{project_id}/brief")
def download_brief(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> Response:
    project = _get_project_or_404(db, project_id, current_user)
    if project.plan:
        brief = brief_service.generate_plan_brief(
            BusinessPlan.model_validate(project.plan), project.name
        )
    elif project.outline and project.context:
        brief = brief_service.generate_outline_brief(
            ProjectOutline.model_validate(project.outline),
            ProjectContext.model_validate(project.context),
            project.name,
        )
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Project plan or outline not available",
        )
    project_service.update_project(db, project, brief_generated=True)
    logger.info(f"Generated brief for project {project.id}")
    return Response(
        content=brief,
        media_type="text/markdown",
        headers={
            "Content-Disposition": (
                f'attachment; filename="{brief_service.brief_filename(project.name)}"'
            )
        },
    )
