from fastapi import APIRouter

from bizcoach.api.routes import (
    ai_coach,
    auth,
    coaching,
    projects,
    users,
)


api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(coaching.router, prefix="/coaching", tags=["coaching"])
api_router.include_router(ai_coach.router, prefix="/ai-coach", tags=["coaching"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
