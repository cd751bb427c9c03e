"""Pydantic schemas for users and auth payloads."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskboard.db.models import Role

# Loose on purpose: rejects obvious garbage only.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserBrief(BaseModel):
    """Embedded user reference (creator, assignee, history actor)."""
    id: str
    name: str
    email: str

    model_config = {"from_attributes": True}


class UserRead(BaseModel):
    id: str
    name: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserList(BaseModel):
    users: list[UserRead]
    total: int
    page: int
    limit: int
    total_pages: int


class UserUpdate(BaseModel):
    """Partial update. Role changes are ADMIN-only (checked in the service)."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Optional[Role] = None


# ─── Auth ────────────────────────────────────────────────


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(..., min_length=8, max_length=100)


class LoginRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    user: UserRead
    token: str
    token_type: str = "bearer"
