"""User service: registration conflicts and search."""

import pytest
from sqlalchemy import func, select

from taskboard.db.models import User
from taskboard.errors import Conflict
from taskboard.services.user_service import UserService

from factories import make_user


@pytest.mark.asyncio
async def test_duplicate_insert_becomes_conflict(db_session, people, monkeypatch):
    """Two registrations racing past the email lookup: the loser gets Conflict."""
    svc = UserService(db_session)

    async def not_found_yet(email):
        return None

    monkeypatch.setattr(svc, "get_by_email", not_found_yet)
    with pytest.raises(Conflict):
        await svc.register("Copy", "u1@example.com", "password123")

    count = (await db_session.execute(select(func.count()).select_from(User))).scalar_one()
    assert count == 3


@pytest.mark.asyncio
async def test_duplicate_email_conflict(db_session, people):
    with pytest.raises(Conflict):
        await UserService(db_session).register("Copy", "u2@example.com", "password123")


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(db_session, people):
    await make_user(db_session, "u3", name="Full 100% coverage")
    await make_user(db_session, "u4", name="snake_case fan")
    svc = UserService(db_session)

    users, total = await svc.list_users(search="%")
    assert [u.id for u in users] == ["u3"]
    assert total == 1

    users, _ = await svc.list_users(search="_")
    assert [u.id for u in users] == ["u4"]

    users, _ = await svc.list_users(search="SNAKE")
    assert [u.id for u in users] == ["u4"]


@pytest.mark.asyncio
async def test_search_pages(db_session, people):
    users, total = await UserService(db_session).list_users(page=2, limit=2)
    assert total == 3
    assert len(users) == 1
