"""Pydantic schemas for projects.

Learn: Separate schemas for create/update/read keeps the API clean.
- ProjectCreate: what you POST to create a project
- ProjectUpdate: what you PUT to modify a project (all optional;
  user_ids, when given, replaces the whole assignment set)
- AssignUsers: body for assign-users / remove-users
- ProjectRead / ProjectDetail: what the API returns
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskboard.schemas.task import TaskRead
from taskboard.schemas.user import UserBrief


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    user_ids: list[str] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    user_ids: Optional[list[str]] = None


class AssignUsers(BaseModel):
    user_ids: list[str] = Field(..., min_length=1)


class ProjectRead(BaseModel):
    id: str
    name: str
    description: Optional[str]
    created_by: UserBrief
    assigned_users: list[UserBrief]
    task_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectDetail(ProjectRead):
    """Single-project view. ``tasks`` only holds tasks the caller can see."""
    tasks: list[TaskRead] = Field(default_factory=list)
