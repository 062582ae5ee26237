from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from bizcoach.models.project import Project, ProjectStatus

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "New Project"


def create_project(
    db: Session,
    *,
    user_id: str,
    name: str = DEFAULT_PROJECT_NAME,
    commit: bool = True,
    **fields: Any,
) -> Project:
    project = Project(
        user_id=user_id,
        name=name or DEFAULT_PROJECT_NAME,
        status=fields.pop("status", ProjectStatus.COACHING),
        brief_generated=fields.pop("brief_generated", False),
        **fields,
    )
    db.add(project)
    if commit:
        db.commit()
        db.refresh(project)
    else:
        db.flush()
    logger.info(f"Created project {project.id} for user {user_id}")
    return project


def get_project(db: Session, project_id: str) -> Project | None:
    return db.query(Project).filter(Project.id == project_id).first()


def _business_name(project: Project) -> str:
    context = project.context or {}
    return str(context.get("businessName") or "")


def list_user_projects(
    db: Session,
    user_id: str,
    search: str | None = None,
    status: ProjectStatus | None = None,
) -> list[Project]:
    query = db.query(Project).filter(Project.user_id == user_id)
    if status is not None:
        query = query.filter(Project.status == status)
    projects = query.order_by(Project.created_at.desc()).all()
    if search:
        needle = search.strip().lower()
        # Business name lives inside the JSON context, so match in Python
        projects = [
            project
            for project in projects
            if needle in project.name.lower() or needle in _business_name(project).lower()
        ]
    return projects


def update_project(db: Session, project: Project, **fields: Any) -> Project:
    for key, value in fields.items():
        if not hasattr(Project, key):
            raise AttributeError(f"Project has no field {key!r}")
        setattr(project, key, value)
    project.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, project: Project) -> None:
    db.delete(project)
    db.commit()
    logger.info(f"Deleted project {project.id}")


def verify_ownership(project: Project | None, user_id: str) -> bool:
    return project is not None and project.user_id == user_id
