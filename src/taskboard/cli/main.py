"""Taskboard CLI — run the server, manage the schema, seed demo data.

Usage:
    taskboard serve                         # Run the API with uvicorn
    taskboard init-db                       # Create tables
    taskboard seed                          # Demo users, projects, tasks
    taskboard issue-token admin@demo.com    # Mint a bearer token for a user
    taskboard stats --token <jwt>           # Dashboard stats via the API
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from datetime import datetime, timedelta, timezone

import click
import httpx

from taskboard import __version__

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("TASKBOARD_API_URL", DEFAULT_API_URL).rstrip("/")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. CliRunner inside an async test) by
    offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="taskboard")
def cli():
    """Taskboard — project and task tracker with role-based access control."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: settings.host)")
@click.option("--port", default=None, type=int, help="Port (default: settings.port)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host, port, reload):
    """Run the API server."""
    import uvicorn

    from taskboard.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "taskboard.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@cli.command("init-db")
def init_db():
    """Create all tables in the configured database."""
    from taskboard.db.engine import create_all, engine

    async def _init():
        await create_all()
        await engine.dispose()

    _run(_init())
    click.secho("Tables created.", fg="green")


# ---------------------------------------------------------------------------
# taskboard seed
# ---------------------------------------------------------------------------


async def seed_demo_data(session) -> dict:
    """Populate an empty database through the services.

    Going through the services (instead of raw inserts) means the demo
    data gets real history entries and the same reference checks as
    API traffic.
    """
    from taskboard.auth.dependencies import Identity
    from taskboard.db.models import Role, TaskPriority, TaskStatus
    from taskboard.services.project_service import ProjectService
    from taskboard.services.task_service import TaskService
    from taskboard.services.user_service import UserService

    users = UserService(session)
    admin = await users.register("Admin Demo", "admin@demo.com", "admin@123", Role.ADMIN)
    user1 = await users.register("User Demo", "user@demo.com", "user@123")
    user2 = await users.register("Jane Smith", "jane@nexus.com", "password123")

    as_admin = Identity(admin.id, admin.email, admin.role)
    projects = ProjectService(session)
    website = await projects.create_project(
        as_admin,
        "Website Redesign",
        "Complete redesign of the company website",
        user_ids=[user1.id, user2.id],
    )
    mobile = await projects.create_project(
        as_admin,
        "Mobile App Development",
        "Build native mobile apps for iOS and Android",
        user_ids=[user1.id],
    )

    soon = datetime.now(timezone.utc) + timedelta(days=7)
    tasks = TaskService(session)
    mockup = await tasks.create_task(
        as_admin,
        "Design Homepage Mockup",
        website.id,
        user2.id,
        description="Create high-fidelity mockups for the new homepage",
        priority=TaskPriority.MEDIUM,
        due_date=soon,
    )
    env = await tasks.create_task(
        as_admin,
        "Set up Development Environment",
        website.id,
        user1.id,
        description="Configure development tools and dependencies",
        due_date=soon,
    )
    await tasks.create_task(
        as_admin,
        "Research React Native Framework",
        mobile.id,
        user1.id,
        description="Evaluate React Native for mobile app development",
        priority=TaskPriority.HIGH,
        due_date=soon,
    )
    await tasks.create_task(
        as_admin,
        "Design App UI/UX",
        mobile.id,
        user2.id,
        description="Create wireframes and user flows for mobile app",
    )

    # A couple of real updates so history has more than creation entries.
    as_jane = Identity(user2.id, user2.email, user2.role)
    await tasks.update_task(
        as_jane,
        mockup.id,
        {"status": TaskStatus.IN_PROGRESS, "priority": TaskPriority.HIGH},
    )
    as_user = Identity(user1.id, user1.email, user1.role)
    await tasks.update_task(as_user, env.id, {"status": TaskStatus.DONE})

    return {"users": 3, "projects": 2, "tasks": 4}


@cli.command()
def seed():
    """Create demo users, projects and tasks."""
    from taskboard.db.engine import async_session_factory, create_all, engine

    async def _seed():
        await create_all()
        async with async_session_factory() as session:
            counts = await seed_demo_data(session)
        await engine.dispose()
        return counts

    counts = _run(_seed())
    click.secho(
        f"Seeded {counts['users']} users, {counts['projects']} projects, "
        f"{counts['tasks']} tasks.",
        fg="green",
    )
    click.echo("  admin@demo.com / admin@123 (ADMIN)")
    click.echo("  user@demo.com  / user@123  (USER)")


# ---------------------------------------------------------------------------
# taskboard issue-token
# ---------------------------------------------------------------------------


@cli.command("issue-token")
@click.argument("email")
@click.option("--days", "-d", type=int, default=None, help="Lifetime in days")
def issue_token(email, days):
    """Mint a bearer token for an existing user."""
    from taskboard.auth.jwt import TokenCodec
    from taskboard.config import get_settings
    from taskboard.db.engine import async_session_factory, engine
    from taskboard.services.user_service import UserService

    async def _lookup():
        async with async_session_factory() as session:
            user = await UserService(session).get_by_email(email)
        await engine.dispose()
        return user

    user = _run(_lookup())
    if user is None:
        click.secho(f"Error: no user with email {email}", fg="red", err=True)
        sys.exit(1)

    ttl = timedelta(days=days) if days else None
    click.echo(TokenCodec(get_settings()).issue(user.id, user.email, user.role, ttl))


# ---------------------------------------------------------------------------
# taskboard stats
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--token", envvar="TASKBOARD_TOKEN", required=True, help="Bearer token")
def stats(token):
    """Fetch dashboard stats from a running server."""

    async def _fetch():
        async with httpx.AsyncClient(base_url=_api_url(), timeout=30.0) as client:
            r = await client.get(
                "/api/v1/dashboard/stats",
                headers={"Authorization": f"Bearer {token}"},
            )
            return r

    try:
        r = _run(_fetch())
    except httpx.HTTPError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    if r.status_code != 200:
        click.secho(f"Error {r.status_code}: {r.text}", fg="red", err=True)
        sys.exit(1)
    click.echo(_pretty_json(r.json()))


if __name__ == "__main__":
    cli()
