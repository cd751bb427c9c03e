"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

Pool sizing only applies to server databases; SQLite URLs (used by the
test suite and quick local runs) get the driver defaults.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from taskboard.config import Settings, get_settings
from taskboard.db.models import Base


def build_engine(settings: Settings) -> AsyncEngine:
    kwargs = {"echo": settings.debug}
    if not settings.database_url.startswith("sqlite"):
        # Connection pool: min 5, max 20 connections.
        kwargs.update(pool_size=5, max_overflow=15)
    return create_async_engine(settings.database_url, **kwargs)


engine = build_engine(get_settings())

# One session per request.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_all(bind: AsyncEngine = engine) -> None:
    """Create every table that doesn't exist yet."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
