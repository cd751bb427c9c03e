"""Project API routes.

Learn: Reads are open to any authenticated identity and narrowed by the
scoping policy inside the service; every mutation is declared ADMIN-only
through its OperationPolicy.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api import operations as ops
from taskboard.auth.dependencies import Identity
from taskboard.auth.roles import role_gate
from taskboard.db.engine import get_db
from taskboard.db.models import Project
from taskboard.schemas.project import (
    AssignUsers,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectUpdate,
)
from taskboard.schemas.task import TaskRead
from taskboard.services.project_service import ProjectService

router = APIRouter(prefix="/projects")


def _project_svc(db: AsyncSession = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


async def _read(svc: ProjectService, project: Project) -> ProjectRead:
    counts = await svc.task_counts([project.id])
    return ProjectRead.model_validate(project).model_copy(
        update={"task_count": counts.get(project.id, 0)}
    )


@router.post("", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    identity: Identity = Depends(role_gate(ops.CREATE_PROJECT)),
    svc: ProjectService = Depends(_project_svc),
):
    """Create a project, optionally assigning users up front."""
    project = await svc.create_project(
        identity,
        name=body.name,
        description=body.description,
        user_ids=body.user_ids,
    )
    return await _read(svc, project)


@router.get("", response_model=list[ProjectRead])
async def list_projects(
    identity: Identity = Depends(role_gate(ops.LIST_PROJECTS)),
    svc: ProjectService = Depends(_project_svc),
):
    """List the projects the caller can see."""
    projects = await svc.list_projects(identity)
    counts = await svc.task_counts([p.id for p in projects])
    return [
        ProjectRead.model_validate(p).model_copy(
            update={"task_count": counts.get(p.id, 0)}
        )
        for p in projects
    ]


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: str,
    identity: Identity = Depends(role_gate(ops.GET_PROJECT)),
    svc: ProjectService = Depends(_project_svc),
):
    """Get one project with the tasks in it that the caller can see."""
    project = await svc.get_project(identity, project_id)
    tasks = await svc.visible_tasks(identity, project_id)
    base = await _read(svc, project)
    return ProjectDetail(
        **base.model_dump(),
        tasks=[TaskRead.model_validate(t) for t in tasks],
    )


@router.put("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    identity: Identity = Depends(role_gate(ops.UPDATE_PROJECT)),
    svc: ProjectService = Depends(_project_svc),
):
    project = await svc.update_project(
        identity, project_id, body.model_dump(exclude_unset=True)
    )
    return await _read(svc, project)


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    identity: Identity = Depends(role_gate(ops.DELETE_PROJECT)),
    svc: ProjectService = Depends(_project_svc),
):
    await svc.delete_project(identity, project_id)
    return {"deleted": True, "id": project_id}


@router.post("/{project_id}/assign-users", response_model=ProjectRead)
async def assign_users(
    project_id: str,
    body: AssignUsers,
    identity: Identity = Depends(role_gate(ops.ASSIGN_PROJECT_USERS)),
    svc: ProjectService = Depends(_project_svc),
):
    project = await svc.assign_users(identity, project_id, body.user_ids)
    return await _read(svc, project)


@router.post("/{project_id}/remove-users", response_model=ProjectRead)
async def remove_users(
    project_id: str,
    body: AssignUsers,
    identity: Identity = Depends(role_gate(ops.REMOVE_PROJECT_USERS)),
    svc: ProjectService = Depends(_project_svc),
):
    project = await svc.remove_users(identity, project_id, body.user_ids)
    return await _read(svc, project)
