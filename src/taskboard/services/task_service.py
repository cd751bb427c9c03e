"""Task service — business logic for tasks and their audit trail.

Learn: Every task change that touches status or priority is:
1. Checked against the scoping policy (existence, then access)
2. Checked for dangling project/assignee references
3. Applied to the tasks table
4. Recorded as an immutable TaskHistory row

Steps 3 and 4 share one transaction: the history row is flushed into the
same session and a single commit() persists both. If that commit fails,
neither write is kept.

Access rules:
  create / delete  → ADMIN only
  read / update    → ADMIN, or the USER the task is assigned to
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.dependencies import Identity
from taskboard.db.models import Task, TaskHistory, TaskPriority, TaskStatus
from taskboard.errors import Forbidden
from taskboard.policy.references import ReferenceChecker
from taskboard.policy.scoping import (
    Action,
    ResourceKind,
    TaskScope,
    ensure_access,
    scope_predicate,
)
from taskboard.services.audit import StatusPriority, TaskAudit

logger = structlog.get_logger()

# Fields TaskUpdate may carry. Anything else in a payload is ignored.
UPDATABLE_FIELDS = (
    "title",
    "description",
    "status",
    "priority",
    "due_date",
    "project_id",
    "assignee_id",
)

# Explicit null is meaningful for these; for the rest it means "leave alone".
NULLABLE_FIELDS = {"description", "due_date"}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskService:
    """Business logic for task CRUD and history."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.refs = ReferenceChecker(db)
        self.audit = TaskAudit(db)

    async def _load(self, task_id: str) -> Optional[Task]:
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def _commit(self, operation: str, task_id: str, actor_id: str) -> None:
        """Commit a task write together with its history entry."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning(
                "audit.commit_failed",
                operation=operation,
                task_id=task_id,
                actor_id=actor_id,
                error=str(e),
            )
            raise

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        identity: Identity,
        title: str,
        project_id: str,
        assignee_id: str,
        description: Optional[str] = None,
        status: TaskStatus = TaskStatus.TODO,
        priority: TaskPriority = TaskPriority.MEDIUM,
        due_date: Optional[datetime] = None,
    ) -> Task:
        """Create a task and its initial history entry."""
        if not TaskScope.can_create(identity):
            raise Forbidden("Only administrators can create tasks")

        await self.refs.require(user_ids=[assignee_id], project_ids=[project_id])

        task = Task(
            title=title,
            description=description,
            status=status,
            priority=priority,
            due_date=_as_utc(due_date),
            project_id=project_id,
            assignee_id=assignee_id,
        )
        self.db.add(task)
        await self.db.flush()  # get the generated id

        await self.audit.record_creation(task, identity.subject_id)
        await self._commit("create", task.id, identity.subject_id)

        logger.info(
            "task.created",
            task_id=task.id,
            project_id=project_id,
            assignee_id=assignee_id,
            created_by=identity.subject_id,
        )
        return await self._load(task.id)

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(
        self,
        identity: Identity,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        project_id: Optional[str] = None,
    ) -> list[Task]:
        """Tasks visible to ``identity``, newest first, with optional filters."""
        query = (
            select(Task)
            .where(scope_predicate(identity, ResourceKind.TASK))
            .order_by(Task.created_at.desc())
            .execution_options(populate_existing=True)
        )
        if status:
            query = query.where(Task.status == status)
        if priority:
            query = query.where(Task.priority == priority)
        if project_id:
            query = query.where(Task.project_id == project_id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_task(self, identity: Identity, task_id: str) -> Task:
        task = await self._load(task_id)
        return ensure_access(identity, task, ResourceKind.TASK, task_id)

    async def get_history(self, identity: Identity, task_id: str) -> list[TaskHistory]:
        await self.get_task(identity, task_id)
        return await self.audit.history(task_id)

    # ─── Update ──────────────────────────────────────────

    async def update_task(
        self, identity: Identity, task_id: str, changes: dict
    ) -> Task:
        """Apply a partial update.

        ``changes`` holds only the fields the caller actually sent
        (TaskUpdate.model_dump(exclude_unset=True)).
        """
        task = await self._load(task_id)
        ensure_access(identity, task, ResourceKind.TASK, task_id, Action.UPDATE)

        changes = {
            k: v
            for k, v in changes.items()
            if k in UPDATABLE_FIELDS and (v is not None or k in NULLABLE_FIELDS)
        }

        user_refs = [changes["assignee_id"]] if "assignee_id" in changes else []
        project_refs = [changes["project_id"]] if "project_id" in changes else []
        await self.refs.require(user_ids=user_refs, project_ids=project_refs)

        before = StatusPriority.of(task)
        for field, value in changes.items():
            if field == "due_date":
                value = _as_utc(value)
            setattr(task, field, value)
        after = StatusPriority.of(task)

        entry = await self.audit.record_if_changed(
            task.id, identity.subject_id, before, after
        )
        await self._commit("update", task_id, identity.subject_id)

        logger.info(
            "task.updated",
            task_id=task_id,
            fields=sorted(changes),
            audited=entry is not None,
        )
        return await self._load(task_id)

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, identity: Identity, task_id: str) -> None:
        """Delete a task. Its history goes with it."""
        task = await self._load(task_id)
        ensure_access(identity, task, ResourceKind.TASK, task_id, Action.DELETE)

        await self.db.delete(task)
        await self.db.commit()
        logger.info("task.deleted", task_id=task_id)
