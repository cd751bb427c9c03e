"""Resource scoping — list filtering and single-record checks must agree."""

import pytest
import pytest_asyncio
from sqlalchemy import select

from taskboard.db.models import Project, Task
from taskboard.errors import Forbidden, NotFound
from taskboard.policy.scoping import (
    Action,
    ResourceKind,
    can_access,
    ensure_access,
    scope_predicate,
)

from factories import identity_of, make_project, make_task


@pytest_asyncio.fixture()
async def world(db_session, people):
    """
    p1: created by admin, u1 assigned
    p2: created by u2, nobody assigned
    p3: created by admin, u1 and u2 assigned
    p4: created by admin, nobody assigned

    t1 (p1 → u2), t2 (p1 → u1), t3 (p2 → u2), t4 (p3 → u1), t5 (p4 → admin)
    """
    await make_project(db_session, "p1", "admin", members=("u1",))
    await make_project(db_session, "p2", "u2")
    await make_project(db_session, "p3", "admin", members=("u1", "u2"))
    await make_project(db_session, "p4", "admin")
    await make_task(db_session, "t1", "p1", "u2")
    await make_task(db_session, "t2", "p1", "u1")
    await make_task(db_session, "t3", "p2", "u2")
    await make_task(db_session, "t4", "p3", "u1")
    await make_task(db_session, "t5", "p4", "admin")
    return people


async def _all(db, model):
    result = await db.execute(
        select(model).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _visible_ids(db, model, identity, kind):
    result = await db.execute(select(model.id).where(scope_predicate(identity, kind)))
    return set(result.scalars().all())


# ═══════════════════════════════════════════════════════════
# Predicate and single-record check agree
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("who", ["admin", "u1", "u2"])
@pytest.mark.parametrize(
    "model,kind", [(Project, ResourceKind.PROJECT), (Task, ResourceKind.TASK)]
)
async def test_list_and_single_record_agree(db_session, world, who, model, kind):
    identity = identity_of(world[who])
    listed = await _visible_ids(db_session, model, identity, kind)
    checked = {
        r.id for r in await _all(db_session, model) if can_access(identity, r)
    }
    assert listed == checked


# ═══════════════════════════════════════════════════════════
# Visibility rules
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_admin_sees_everything(db_session, world):
    admin = identity_of(world["admin"])
    assert await _visible_ids(db_session, Project, admin, ResourceKind.PROJECT) == {
        "p1", "p2", "p3", "p4"
    }
    assert await _visible_ids(db_session, Task, admin, ResourceKind.TASK) == {
        "t1", "t2", "t3", "t4", "t5"
    }


@pytest.mark.asyncio
async def test_user_sees_created_or_assigned_projects(db_session, world):
    u1 = identity_of(world["u1"])
    u2 = identity_of(world["u2"])
    assert await _visible_ids(db_session, Project, u1, ResourceKind.PROJECT) == {"p1", "p3"}
    # p2 by creation, p3 by assignment
    assert await _visible_ids(db_session, Project, u2, ResourceKind.PROJECT) == {"p2", "p3"}


@pytest.mark.asyncio
async def test_user_sees_only_assigned_tasks(db_session, world):
    u1 = identity_of(world["u1"])
    u2 = identity_of(world["u2"])
    assert await _visible_ids(db_session, Task, u1, ResourceKind.TASK) == {"t2", "t4"}
    # t1 lives in p1, which u2 can't see; assignment alone is enough.
    assert await _visible_ids(db_session, Task, u2, ResourceKind.TASK) == {"t1", "t3"}


@pytest.mark.asyncio
async def test_user_with_nothing_gets_empty_lists(db_session, world):
    from factories import make_user

    loner = identity_of(await make_user(db_session, "u3"))
    assert await _visible_ids(db_session, Project, loner, ResourceKind.PROJECT) == set()
    assert await _visible_ids(db_session, Task, loner, ResourceKind.TASK) == set()


# ═══════════════════════════════════════════════════════════
# ensure_access: NotFound before Forbidden
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_existing_but_hidden_task_is_forbidden(db_session, world):
    t1 = await db_session.get(Task, "t1")
    with pytest.raises(Forbidden):
        ensure_access(identity_of(world["u1"]), t1, ResourceKind.TASK, "t1")


@pytest.mark.asyncio
async def test_missing_task_is_not_found_for_everyone(db_session, world):
    for who in ("admin", "u1"):
        with pytest.raises(NotFound) as exc:
            ensure_access(identity_of(world[who]), None, ResourceKind.TASK, "t9")
        assert exc.value.detail == "Task with ID t9 not found"


@pytest.mark.asyncio
async def test_visible_record_is_returned(db_session, world):
    t2 = await db_session.get(Task, "t2")
    assert ensure_access(identity_of(world["u1"]), t2, ResourceKind.TASK, "t2") is t2


# ═══════════════════════════════════════════════════════════
# Mutation rules
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_creator_cannot_update_own_project(db_session, world):
    (p2,) = [p for p in await _all(db_session, Project) if p.id == "p2"]
    u2 = identity_of(world["u2"])
    assert can_access(u2, p2)
    with pytest.raises(Forbidden):
        ensure_access(u2, p2, ResourceKind.PROJECT, "p2", Action.UPDATE)
    with pytest.raises(Forbidden):
        ensure_access(u2, p2, ResourceKind.PROJECT, "p2", Action.DELETE)


@pytest.mark.asyncio
async def test_assignee_may_update_but_not_delete_task(db_session, world):
    t2 = await db_session.get(Task, "t2")
    u1 = identity_of(world["u1"])
    ensure_access(u1, t2, ResourceKind.TASK, "t2", Action.UPDATE)
    with pytest.raises(Forbidden):
        ensure_access(u1, t2, ResourceKind.TASK, "t2", Action.DELETE)


@pytest.mark.asyncio
async def test_admin_may_mutate_anything(db_session, world):
    admin = identity_of(world["admin"])
    for record in await _all(db_session, Project):
        ensure_access(admin, record, ResourceKind.PROJECT, record.id, Action.DELETE)
    for record in await _all(db_session, Task):
        ensure_access(admin, record, ResourceKind.TASK, record.id, Action.UPDATE)
