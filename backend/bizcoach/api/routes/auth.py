import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from bizcoach.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from bizcoach.db.session import get_db
from bizcoach.models.user import User
from bizcoach.schemas import auth as auth_schema

logger = logging.getLogger(__name__)

router = APIRouter()


def _token_pair(user: User) -> auth_schema.TokenPair:
    return auth_schema.TokenPair(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )


@router.post(
    "/register", response_model=auth_schema.TokenPair, status_code=status.HTTP_201_CREATED
)
def register_user(
    payload: auth_schema.RegisterRequest,
    db: Session = Depends(get_db),
) -> auth_schema.TokenPair:
    email = payload.email.lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered"
        )
    user = User(
        email=email,
        full_name=payload.full_name,
        hashed_password=get_password_hash(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return _token_pair(user)


@router.post("/login", response_model=auth_schema.TokenPair)
def login_user(
    payload: auth_schema.LoginRequest,
    db: Session = Depends(get_db),
) -> auth_schema.TokenPair:
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )
    return _token_pair(user)


@router.post("/refresh", response_model=auth_schema.TokenPair)
def refresh_token(
    payload: auth_schema.RefreshRequest,
    db: Session = Depends(get_db),
) -> auth_schema.TokenPair:
    try:
        data = decode_token(payload.refresh_token)
        if data.get("type") != "refresh":
            raise ValueError("Invalid refresh token")
        user_id = str(data["sub"])
    except (ValueError, KeyError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        ) from exc
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return _token_pair(user)
