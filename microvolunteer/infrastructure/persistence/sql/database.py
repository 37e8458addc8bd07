"""Async SQLAlchemy engine and session factory.

Usage:
    from .database import get_engine, get_session_factory

    engine = get_engine(database_url)
    async_session = get_session_factory(engine)

    async with async_session() as session:
        ...
"""

from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .models import Base


def as_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware (UTC). SQLite hands back naive values."""
    if dt is None:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


def normalize_database_url(database_url: str) -> str:
    """Rewrite postgres:// and postgresql:// URLs to the asyncpg driver."""
    url = database_url
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def get_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async SQLAlchemy engine from DATABASE_URL.

    Accepts both postgres:// and postgresql+asyncpg:// URL formats; any other
    async URL (e.g. sqlite+aiosqlite://) is passed through.
    """
    url = normalize_database_url(database_url)

    if url.startswith("postgresql+asyncpg://"):
        return create_async_engine(
            url,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            echo=echo,
        )
    return create_async_engine(url, echo=echo)


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the given engine."""
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables (development and tests; production uses Alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
