"""User API routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api import operations as ops
from taskboard.auth.dependencies import Identity
from taskboard.auth.roles import role_gate
from taskboard.db.engine import get_db
from taskboard.schemas.user import UserList, UserRead, UserUpdate
from taskboard.services.user_service import UserService, total_pages

router = APIRouter(prefix="/users")


def _user_svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=UserList)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query("", description="Match against name or email"),
    identity: Identity = Depends(role_gate(ops.LIST_USERS)),
    svc: UserService = Depends(_user_svc),
):
    """List users with pagination (ADMIN only)."""
    users, total = await svc.list_users(page=page, limit=limit, search=search)
    return UserList(
        users=[UserRead.model_validate(u) for u in users],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit),
    )


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: str,
    identity: Identity = Depends(role_gate(ops.GET_USER)),
    svc: UserService = Depends(_user_svc),
):
    """Get a user. USERs may only read their own profile."""
    return await svc.get_user(identity, user_id)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: str,
    body: UserUpdate,
    identity: Identity = Depends(role_gate(ops.UPDATE_USER)),
    svc: UserService = Depends(_user_svc),
):
    """Update name and/or role. Role changes are ADMIN-only."""
    return await svc.update_user(identity, user_id, name=body.name, role=body.role)
