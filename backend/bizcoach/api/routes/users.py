from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bizcoach.api import deps
from bizcoach.db.session import get_db
from bizcoach.models.user import User
from bizcoach.schemas.user import UserPublic, UserUpdate

router = APIRouter()


@router.get("/me", response_model=UserPublic)
def get_profile(current_user: User = Depends(deps.get_current_user)) -> UserPublic:
    return current_user


@router.patch("/me", response_model=UserPublic)
def update_profile(
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> UserPublic:
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, key, value)
    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    return current_user
