"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Health and auth routers are open. Every other route declares its
own OperationPolicy through role_gate(), which depends on the
authentication gate, so authentication always runs first and the role
check runs second.
"""

from fastapi import APIRouter

from taskboard.api.auth import router as auth_router
from taskboard.api.dashboard import router as dashboard_router
from taskboard.api.health import router as health_router
from taskboard.api.projects import router as projects_router
from taskboard.api.tasks import router as tasks_router
from taskboard.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

# Open routes (except /auth/me)
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes: bearer token plus per-operation role policy
api_router.include_router(users_router, tags=["users"])
api_router.include_router(projects_router, tags=["projects"])
api_router.include_router(tasks_router, tags=["tasks"])
api_router.include_router(dashboard_router, tags=["dashboard"])
