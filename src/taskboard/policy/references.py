"""Referential checks for write payloads.

Before a project's assigned users or a task's project/assignee are
written, every referenced ID has to exist. Missing IDs are collected
across all kinds and reported together in one DanglingReference, in the
order the caller gave them.
"""

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.models import Project, User
from taskboard.errors import DanglingReference


def _unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class ReferenceChecker:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _missing(self, model, ids: Iterable[str]) -> list[str]:
        wanted = _unique(ids)
        if not wanted:
            return []
        result = await self.db.execute(select(model.id).where(model.id.in_(wanted)))
        found = set(result.scalars().all())
        return [i for i in wanted if i not in found]

    async def require(
        self,
        user_ids: Optional[Iterable[str]] = None,
        project_ids: Optional[Iterable[str]] = None,
    ) -> None:
        """Raise DanglingReference listing every ID that doesn't resolve."""
        missing = {
            "project": await self._missing(Project, project_ids or []),
            "user": await self._missing(User, user_ids or []),
        }
        if any(missing.values()):
            raise DanglingReference(missing)
