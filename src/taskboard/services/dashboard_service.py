"""Dashboard statistics.

Learn: Every number here is a COUNT over the same scoping predicate the
list endpoints use, so the dashboard can never report on records the
caller couldn't list. An ADMIN gets system-wide numbers, a USER gets
numbers for their own projects and assigned tasks.
"""

from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.dependencies import Identity
from taskboard.db.models import Project, Task, TaskStatus
from taskboard.policy.scoping import ResourceKind, scope_predicate
from taskboard.schemas.dashboard import DashboardStats


def completion_rate(completed: int, total: int) -> int:
    """Percentage of completed tasks, rounded half up; 0 when there are no tasks."""
    if total == 0:
        return 0
    return (completed * 200 + total) // (2 * total)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DashboardService:
    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = _utcnow):
        self.db = db
        self.clock = clock

    async def _count(self, query) -> int:
        result = await self.db.execute(query)
        return result.scalar_one()

    async def _distribution(self, column, where) -> dict[str, int]:
        result = await self.db.execute(
            select(column, func.count()).where(where).group_by(column)
        )
        return {value.value: count for value, count in result.all()}

    async def stats(self, identity: Identity) -> DashboardStats:
        projects = scope_predicate(identity, ResourceKind.PROJECT)
        tasks = scope_predicate(identity, ResourceKind.TASK)
        not_done = Task.status != TaskStatus.DONE

        total_projects = await self._count(
            select(func.count()).select_from(Project).where(projects)
        )
        total_tasks = await self._count(
            select(func.count()).select_from(Task).where(tasks)
        )
        completed = await self._count(
            select(func.count())
            .select_from(Task)
            .where(tasks, Task.status == TaskStatus.DONE)
        )
        pending = await self._count(
            select(func.count()).select_from(Task).where(tasks, not_done)
        )
        # NULL due_date never compares less-than, so undated tasks drop out.
        overdue = await self._count(
            select(func.count())
            .select_from(Task)
            .where(tasks, not_done, Task.due_date < self.clock())
        )

        return DashboardStats(
            total_projects=total_projects,
            tasks_completed=completed,
            completion_rate=completion_rate(completed, total_tasks),
            pending_tasks=pending,
            overdue_tasks=overdue,
            status_distribution=await self._distribution(Task.status, tasks),
            priority_distribution=await self._distribution(Task.priority, tasks),
        )
