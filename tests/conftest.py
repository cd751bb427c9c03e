"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite in-memory engine (aiosqlite) with the
   full schema created, so there is no cross-test pollution and no
   external database is needed.
2. StaticPool keeps the single in-memory connection alive for the whole
   test; foreign keys are switched on so cascades behave like Postgres.
3. The `client` fixture overrides get_db and the token codec, and talks
   to the app in-process through httpx's ASGITransport.

Users are inserted directly with a placeholder hash; only the
register/login tests pay for real bcrypt hashing.
"""

import os

os.environ.setdefault("TASKBOARD_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TASKBOARD_ENVIRONMENT", "test")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from taskboard.auth.dependencies import get_token_codec  # noqa: E402
from taskboard.auth.jwt import TokenCodec  # noqa: E402
from taskboard.db.engine import get_db  # noqa: E402
from taskboard.db.models import Base, Role  # noqa: E402
from taskboard.main import app  # noqa: E402

from factories import TEST_SETTINGS, make_user  # noqa: E402


@pytest_asyncio.fixture()
async def db_session():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_fks(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest.fixture()
def codec():
    return TokenCodec(TEST_SETTINGS)


@pytest_asyncio.fixture()
async def client(db_session, codec):
    """HTTP client running the real auth pipeline against the test DB."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_codec] = lambda: codec

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def people(db_session):
    """An admin and two regular users: admin, u1, u2."""
    return {
        "admin": await make_user(db_session, "admin", Role.ADMIN),
        "u1": await make_user(db_session, "u1"),
        "u2": await make_user(db_session, "u2"),
    }
