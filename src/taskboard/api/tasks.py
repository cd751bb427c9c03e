"""Task API routes.

Learn: These routes are the HTTP interface to the task service. The
service handles scoping, reference checks and the audit trail; routes
just translate HTTP to service calls.

Key patterns:
- PUT is a partial update: only fields present in the body are applied
- GET /tasks/{id} embeds the full history, newest first
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api import operations as ops
from taskboard.auth.dependencies import Identity
from taskboard.auth.roles import role_gate
from taskboard.db.engine import get_db
from taskboard.db.models import TaskPriority, TaskStatus
from taskboard.schemas.task import (
    TaskCreate,
    TaskDetail,
    TaskHistoryRead,
    TaskRead,
    TaskUpdate,
)
from taskboard.services.task_service import TaskService

router = APIRouter(prefix="/tasks")


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    identity: Identity = Depends(role_gate(ops.CREATE_TASK)),
    svc: TaskService = Depends(_task_svc),
):
    """Create a task. Writes the initial history entry."""
    return await svc.create_task(
        identity,
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
        due_date=body.due_date,
        project_id=body.project_id,
        assignee_id=body.assignee_id,
    )


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    status: Optional[TaskStatus] = Query(None, description="Filter by status"),
    priority: Optional[TaskPriority] = Query(None, description="Filter by priority"),
    project_id: Optional[str] = Query(None, description="Filter by project"),
    identity: Identity = Depends(role_gate(ops.LIST_TASKS)),
    svc: TaskService = Depends(_task_svc),
):
    """List the tasks the caller can see."""
    return await svc.list_tasks(
        identity, status=status, priority=priority, project_id=project_id
    )


@router.get("/{task_id}", response_model=TaskDetail)
async def get_task(
    task_id: str,
    identity: Identity = Depends(role_gate(ops.GET_TASK)),
    svc: TaskService = Depends(_task_svc),
):
    """Get a single task with its history."""
    task = await svc.get_task(identity, task_id)
    history = await svc.get_history(identity, task_id)
    return TaskDetail(
        **TaskRead.model_validate(task).model_dump(),
        history=[TaskHistoryRead.model_validate(h) for h in history],
    )


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: str,
    body: TaskUpdate,
    identity: Identity = Depends(role_gate(ops.UPDATE_TASK)),
    svc: TaskService = Depends(_task_svc),
):
    """Partially update a task. Status/priority changes are audited."""
    return await svc.update_task(
        identity, task_id, body.model_dump(exclude_unset=True)
    )


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    identity: Identity = Depends(role_gate(ops.DELETE_TASK)),
    svc: TaskService = Depends(_task_svc),
):
    await svc.delete_task(identity, task_id)
    return {"deleted": True, "id": task_id}
