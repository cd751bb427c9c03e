"""Pydantic schemas for tasks and their history.

Learn: TaskUpdate is a partial update — only fields present in the
request body are applied (model_fields_set), which lets a client clear
due_date by sending null explicitly while omitting it leaves it alone.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskboard.db.models import TaskPriority, TaskStatus
from taskboard.schemas.user import UserBrief


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    project_id: str
    assignee_id: str


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    project_id: Optional[str] = None
    assignee_id: Optional[str] = None


class ProjectBrief(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class TaskRead(BaseModel):
    id: str
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime]
    project_id: str
    assignee_id: str
    project: ProjectBrief
    assignee: UserBrief
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskHistoryRead(BaseModel):
    id: int
    task_id: str
    updated_by: UserBrief
    old_status: Optional[TaskStatus]
    new_status: TaskStatus
    old_priority: Optional[TaskPriority]
    new_priority: TaskPriority
    timestamp: datetime

    model_config = {"from_attributes": True}


class TaskDetail(TaskRead):
    history: list[TaskHistoryRead] = Field(default_factory=list)
