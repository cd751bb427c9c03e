"""Project service — business logic for projects and their assignments.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database.

Every read goes through the scoping policy: lists are filtered in SQL by
scope_predicate, single records are fetched first and then checked with
ensure_access (NotFound before Forbidden). Mutations are ADMIN-only,
which the routes already enforce with the role gate; the service checks
again through ensure_access so it is safe to call from elsewhere.
"""

from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.dependencies import Identity
from taskboard.db.models import Project, ProjectUser, Task
from taskboard.errors import Forbidden
from taskboard.policy.references import ReferenceChecker
from taskboard.policy.scoping import (
    Action,
    ProjectScope,
    ResourceKind,
    ensure_access,
    scope_predicate,
)

logger = structlog.get_logger()

# Fields ProjectUpdate may carry.
UPDATABLE_FIELDS = ("name", "description", "user_ids")

# Explicit null clears these; for the rest it means "leave alone".
NULLABLE_FIELDS = {"description"}


class ProjectService:
    """Business logic for project CRUD and user assignment."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.refs = ReferenceChecker(db)

    # ─── Loading ─────────────────────────────────────────

    async def _load(self, project_id: str) -> Optional[Project]:
        # populate_existing refreshes relationships already in the identity map.
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def task_counts(self, project_ids: list[str]) -> dict[str, int]:
        if not project_ids:
            return {}
        result = await self.db.execute(
            select(Task.project_id, func.count(Task.id))
            .where(Task.project_id.in_(project_ids))
            .group_by(Task.project_id)
        )
        return {pid: count for pid, count in result.all()}

    # ─── Create ──────────────────────────────────────────

    async def create_project(
        self,
        identity: Identity,
        name: str,
        description: Optional[str] = None,
        user_ids: Optional[list[str]] = None,
    ) -> Project:
        if not ProjectScope.can_create(identity):
            raise Forbidden("Only administrators can create projects")

        user_ids = list(dict.fromkeys(user_ids or []))
        await self.refs.require(user_ids=user_ids)

        project = Project(
            name=name,
            description=description,
            created_by_id=identity.subject_id,
            members=[ProjectUser(user_id=uid) for uid in user_ids],
        )
        self.db.add(project)
        await self.db.commit()

        logger.info(
            "project.created",
            project_id=project.id,
            created_by=identity.subject_id,
            assigned=len(user_ids),
        )
        return await self._load(project.id)

    # ─── Read ────────────────────────────────────────────

    async def list_projects(self, identity: Identity) -> list[Project]:
        """Projects visible to ``identity``, newest first. Never raises for scope."""
        result = await self.db.execute(
            select(Project)
            .where(scope_predicate(identity, ResourceKind.PROJECT))
            .order_by(Project.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_project(self, identity: Identity, project_id: str) -> Project:
        project = await self._load(project_id)
        return ensure_access(identity, project, ResourceKind.PROJECT, project_id)

    async def visible_tasks(self, identity: Identity, project_id: str) -> list[Task]:
        """Tasks of one project, narrowed to what ``identity`` may see."""
        result = await self.db.execute(
            select(Task)
            .where(
                Task.project_id == project_id,
                scope_predicate(identity, ResourceKind.TASK),
            )
            .order_by(Task.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    # ─── Update ──────────────────────────────────────────

    async def update_project(
        self, identity: Identity, project_id: str, changes: dict
    ) -> Project:
        """Partial update.

        ``changes`` holds only the fields the caller actually sent
        (ProjectUpdate.model_dump(exclude_unset=True)). ``user_ids``
        replaces the assignment set; an explicit null description clears it.
        """
        project = await self._load(project_id)
        ensure_access(identity, project, ResourceKind.PROJECT, project_id, Action.UPDATE)

        changes = {
            k: v
            for k, v in changes.items()
            if k in UPDATABLE_FIELDS and (v is not None or k in NULLABLE_FIELDS)
        }

        user_ids = changes.get("user_ids")
        if user_ids is not None:
            user_ids = list(dict.fromkeys(user_ids))
            await self.refs.require(user_ids=user_ids)

        if "name" in changes:
            project.name = changes["name"]
        if "description" in changes:
            project.description = changes["description"]
        if user_ids is not None:
            keep = {m.user_id: m for m in project.members if m.user_id in user_ids}
            project.members = [
                keep.get(uid) or ProjectUser(user_id=uid) for uid in user_ids
            ]

        await self.db.commit()
        logger.info("project.updated", project_id=project_id)
        return await self._load(project_id)

    async def assign_users(
        self, identity: Identity, project_id: str, user_ids: list[str]
    ) -> Project:
        """Add assignments. Users already assigned are left as they are."""
        project = await self._load(project_id)
        ensure_access(identity, project, ResourceKind.PROJECT, project_id, Action.UPDATE)
        await self.refs.require(user_ids=user_ids)

        current = project.assigned_user_ids
        added = [uid for uid in dict.fromkeys(user_ids) if uid not in current]
        for uid in added:
            project.members.append(ProjectUser(user_id=uid))

        await self.db.commit()
        logger.info("project.users_assigned", project_id=project_id, added=added)
        return await self._load(project_id)

    async def remove_users(
        self, identity: Identity, project_id: str, user_ids: list[str]
    ) -> Project:
        project = await self._load(project_id)
        ensure_access(identity, project, ResourceKind.PROJECT, project_id, Action.UPDATE)

        drop = set(user_ids)
        project.members = [m for m in project.members if m.user_id not in drop]

        await self.db.commit()
        logger.info("project.users_removed", project_id=project_id, removed=sorted(drop))
        return await self._load(project_id)

    # ─── Delete ──────────────────────────────────────────

    async def delete_project(self, identity: Identity, project_id: str) -> None:
        """Delete a project along with its tasks and their history."""
        project = await self._load(project_id)
        ensure_access(identity, project, ResourceKind.PROJECT, project_id, Action.DELETE)

        await self.db.delete(project)
        await self.db.commit()
        logger.info("project.deleted", project_id=project_id)
