"""Task mutation audit."""

import pytest
import pytest_asyncio

from taskboard.db.models import TaskPriority, TaskStatus
from taskboard.services.audit import StatusPriority, history_delta
from taskboard.services.task_service import TaskService

from factories import identity_of, make_project

TODO_MED = StatusPriority(TaskStatus.TODO, TaskPriority.MEDIUM)


def test_no_change_no_entry():
    assert history_delta(TODO_MED, TODO_MED) is None


def test_priority_only_change():
    after = StatusPriority(TaskStatus.TODO, TaskPriority.HIGH)
    assert history_delta(TODO_MED, after) == {
        "old_status": None,
        "new_status": TaskStatus.TODO,
        "old_priority": TaskPriority.MEDIUM,
        "new_priority": TaskPriority.HIGH,
    }


def test_both_change():
    after = StatusPriority(TaskStatus.DONE, TaskPriority.LOW)
    delta = history_delta(TODO_MED, after)
    assert delta["old_status"] == TaskStatus.TODO
    assert delta["new_status"] == TaskStatus.DONE
    assert delta["old_priority"] == TaskPriority.MEDIUM
    assert delta["new_priority"] == TaskPriority.LOW


# ═══════════════════════════════════════════════════════════
# Through the task service
# ═══════════════════════════════════════════════════════════


@pytest_asyncio.fixture()
async def task(db_session, people):
    await make_project(db_session, "p1", "admin", members=("u1",))
    return await TaskService(db_session).create_task(
        identity_of(people["admin"]), "Write docs", "p1", "u1"
    )


@pytest.mark.asyncio
async def test_creation_writes_one_entry(db_session, people, task):
    history = await TaskService(db_session).audit.history(task.id)
    assert len(history) == 1
    entry = history[0]
    assert entry.old_status is None and entry.old_priority is None
    assert entry.new_status == TaskStatus.TODO
    assert entry.new_priority == TaskPriority.MEDIUM
    assert entry.updated_by_id == "admin"


@pytest.mark.asyncio
async def test_same_values_write_nothing(db_session, people, task):
    svc = TaskService(db_session)
    await svc.update_task(
        identity_of(people["u1"]),
        task.id,
        {"status": TaskStatus.TODO, "priority": TaskPriority.MEDIUM, "title": "Renamed"},
    )
    assert len(await svc.audit.history(task.id)) == 1


@pytest.mark.asyncio
async def test_status_change_records_actor(db_session, people, task):
    svc = TaskService(db_session)
    await svc.update_task(
        identity_of(people["u1"]), task.id, {"status": TaskStatus.IN_PROGRESS}
    )
    latest = (await svc.audit.history(task.id))[0]
    assert latest.updated_by_id == "u1"
    assert latest.old_status == TaskStatus.TODO
    assert latest.new_status == TaskStatus.IN_PROGRESS
    assert latest.old_priority is None
    assert latest.new_priority == TaskPriority.MEDIUM


@pytest.mark.asyncio
async def test_history_newest_first(db_session, people, task):
    svc = TaskService(db_session)
    u1 = identity_of(people["u1"])
    await svc.update_task(u1, task.id, {"status": TaskStatus.IN_PROGRESS})
    await svc.update_task(u1, task.id, {"status": TaskStatus.REVIEW})
    await svc.update_task(u1, task.id, {"priority": TaskPriority.HIGH})

    history = await svc.get_history(u1, task.id)
    assert [h.new_status for h in history] == [
        TaskStatus.REVIEW,
        TaskStatus.REVIEW,
        TaskStatus.IN_PROGRESS,
        TaskStatus.TODO,
    ]
    assert history[0].new_priority == TaskPriority.HIGH
    assert history[-1].old_status is None


@pytest.mark.asyncio
async def test_history_follows_task_access(db_session, people, task):
    from taskboard.errors import Forbidden

    with pytest.raises(Forbidden):
        await TaskService(db_session).get_history(identity_of(people["u2"]), task.id)
