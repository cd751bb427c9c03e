"""CLI tests — demo seed and the click group."""

import pytest
from click.testing import CliRunner

from taskboard import __version__
from taskboard.cli.main import cli, seed_demo_data
from taskboard.db.models import Role
from taskboard.services.dashboard_service import DashboardService
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService

from factories import identity_of


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_commands():
    result = CliRunner().invoke(cli, ["--help"])
    for command in ("serve", "init-db", "seed", "issue-token", "stats"):
        assert command in result.output


@pytest.mark.asyncio
async def test_seed_demo_data(db_session):
    counts = await seed_demo_data(db_session)
    assert counts == {"users": 3, "projects": 2, "tasks": 4}

    users = UserService(db_session)
    admin = await users.authenticate("admin@demo.com", "admin@123")
    assert admin.role == Role.ADMIN
    jane = await users.get_by_email("jane@nexus.com")

    stats = await DashboardService(db_session).stats(identity_of(admin))
    assert stats.total_projects == 2
    assert stats.tasks_completed == 1
    assert stats.completion_rate == 25

    tasks = await TaskService(db_session).list_tasks(identity_of(jane))
    assert len(tasks) == 2
    mockup = next(t for t in tasks if t.title == "Design Homepage Mockup")
    history = await TaskService(db_session).get_history(identity_of(jane), mockup.id)
    assert len(history) == 2
