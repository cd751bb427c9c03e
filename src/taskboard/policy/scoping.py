"""Resource scoping policy — which records an identity may see or change.

Learn: Each resource kind has one visibility rule expressed twice:

- list_predicate(identity) → a SQLAlchemy WHERE clause, used by list and
  aggregate queries so the database does the filtering
- can_access(identity, record) → the same rule evaluated in Python on a
  single loaded record, used by read/update/delete

The two must always agree: a record is readable on its own exactly when
it would show up in a list for the same identity. tests/test_scoping.py
checks this against a real database.

Rules:
    Project  ADMIN → everything
             USER  → created_by_id == me OR me in assigned users
    Task     ADMIN → everything
             USER  → assignee_id == me

Mutation is coarser than visibility for projects: only ADMIN may create,
update, delete or (re)assign users, even on a project the USER created.
For tasks, update mirrors visibility, while create and delete are
ADMIN-only.

Checks run in a fixed order: existence first (NotFound), then access
(Forbidden).
"""

import enum
from typing import Optional, Union

from sqlalchemy import ColumnElement, and_, select, true

from taskboard.auth.dependencies import Identity
from taskboard.db.models import Project, ProjectUser, Task
from taskboard.errors import Forbidden, NotFound


class ResourceKind(str, enum.Enum):
    PROJECT = "project"
    TASK = "task"


class Action(str, enum.Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


Record = Union[Project, Task]


class ProjectScope:
    kind = ResourceKind.PROJECT

    @staticmethod
    def list_predicate(identity: Identity) -> ColumnElement[bool]:
        if identity.is_admin:
            return true()
        is_member = (
            select(ProjectUser.user_id)
            .where(
                and_(
                    ProjectUser.project_id == Project.id,
                    ProjectUser.user_id == identity.subject_id,
                )
            )
            .exists()
        )
        return (Project.created_by_id == identity.subject_id) | is_member

    @staticmethod
    def can_access(identity: Identity, project: Project) -> bool:
        if identity.is_admin:
            return True
        return (
            project.created_by_id == identity.subject_id
            or identity.subject_id in project.assigned_user_ids
        )

    @staticmethod
    def can_mutate(identity: Identity, project: Project) -> bool:
        # Ownership grants visibility only.
        return identity.is_admin

    @staticmethod
    def can_create(identity: Identity) -> bool:
        return identity.is_admin

    @staticmethod
    def can_delete(identity: Identity, project: Project) -> bool:
        return identity.is_admin


class TaskScope:
    kind = ResourceKind.TASK

    @staticmethod
    def list_predicate(identity: Identity) -> ColumnElement[bool]:
        if identity.is_admin:
            return true()
        return Task.assignee_id == identity.subject_id

    @staticmethod
    def can_access(identity: Identity, task: Task) -> bool:
        return identity.is_admin or task.assignee_id == identity.subject_id

    @staticmethod
    def can_mutate(identity: Identity, task: Task) -> bool:
        return TaskScope.can_access(identity, task)

    @staticmethod
    def can_create(identity: Identity) -> bool:
        return identity.is_admin

    @staticmethod
    def can_delete(identity: Identity, task: Task) -> bool:
        return identity.is_admin


_SCOPES = {
    ResourceKind.PROJECT: ProjectScope,
    ResourceKind.TASK: TaskScope,
}


def scope_for(kind: ResourceKind):
    return _SCOPES[ResourceKind(kind)]


def scope_predicate(identity: Identity, kind: ResourceKind) -> ColumnElement[bool]:
    """WHERE clause limiting ``kind`` to what ``identity`` may see."""
    return scope_for(kind).list_predicate(identity)


def _kind_of(record: Record) -> ResourceKind:
    if isinstance(record, Project):
        return ResourceKind.PROJECT
    if isinstance(record, Task):
        return ResourceKind.TASK
    raise TypeError(f"No scoping rule for {type(record).__name__}")


def can_access(identity: Identity, record: Record) -> bool:
    """Single-record counterpart of scope_predicate."""
    return scope_for(_kind_of(record)).can_access(identity, record)


def ensure_access(
    identity: Identity,
    record: Optional[Record],
    kind: ResourceKind,
    record_id: str,
    action: Action = Action.READ,
) -> Record:
    """Return ``record`` if ``identity`` may perform ``action`` on it.

    Raises NotFound when the record doesn't exist (checked first, even
    for identities that would have been refused anyway), Forbidden when
    it exists but the rule says no.
    """
    if record is None:
        raise NotFound(kind.value, record_id)

    scope = scope_for(kind)
    if action is Action.READ:
        allowed = scope.can_access(identity, record)
    elif action is Action.UPDATE:
        allowed = scope.can_mutate(identity, record)
    else:
        allowed = scope.can_delete(identity, record)

    if not allowed:
        raise Forbidden(f"You do not have permission to {action.value} this {kind.value}")
    return record
