"""Task mutation audit — append-only status/priority history.

Learn: Same idea as an event store: every change is an immutable row,
never an UPDATE. Only two things are recorded, status and priority.

- Creation always writes one entry: old_* NULL, new_* = initial values.
- An update writes one entry only if status or priority actually
  changed. The dimension that didn't change gets old_* = NULL while
  new_* still carries its current value.

TaskAudit only adds rows to the caller's session (flush, no commit).
The task service commits the task change and its entry together, so
they land in the same transaction.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.models import Task, TaskHistory, TaskPriority, TaskStatus


@dataclass(frozen=True)
class StatusPriority:
    status: TaskStatus
    priority: TaskPriority

    @classmethod
    def of(cls, task: Task) -> "StatusPriority":
        return cls(status=task.status, priority=task.priority)


def history_delta(
    before: StatusPriority, after: StatusPriority
) -> Optional[dict]:
    """Column values for a history row, or None when nothing changed."""
    status_changed = after.status != before.status
    priority_changed = after.priority != before.priority
    if not (status_changed or priority_changed):
        return None
    return {
        "old_status": before.status if status_changed else None,
        "new_status": after.status,
        "old_priority": before.priority if priority_changed else None,
        "new_priority": after.priority,
    }


class TaskAudit:
    """Writes and reads task history. There is no update or delete."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _append(self, task_id: str, actor_id: str, **values) -> TaskHistory:
        entry = TaskHistory(task_id=task_id, updated_by_id=actor_id, **values)
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def record_creation(self, task: Task, actor_id: str) -> TaskHistory:
        return await self._append(
            task.id,
            actor_id,
            old_status=None,
            new_status=task.status,
            old_priority=None,
            new_priority=task.priority,
        )

    async def record_if_changed(
        self,
        task_id: str,
        actor_id: str,
        before: StatusPriority,
        after: StatusPriority,
    ) -> Optional[TaskHistory]:
        delta = history_delta(before, after)
        if delta is None:
            return None
        return await self._append(task_id, actor_id, **delta)

    async def history(self, task_id: str) -> list[TaskHistory]:
        """Entries for a task, most recent first."""
        result = await self.db.execute(
            select(TaskHistory)
            .where(TaskHistory.task_id == task_id)
            .order_by(TaskHistory.timestamp.desc(), TaskHistory.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
