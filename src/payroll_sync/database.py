"""Database connection used for cross-process sync locks.

Source records are not persisted here; the database only provides
PostgreSQL advisory locks so two sync processes cannot both create the
same employee's timesheet.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from payroll_sync.config import get_settings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


def get_engine(database_url: str) -> AsyncEngine:
    """Create async database engine."""
    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=5,
    )


# Global engine and session factory
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db() -> async_sessionmaker[AsyncSession] | None:
    """Initialize the session factory, or return None when no database is configured."""
    global _engine, _session_factory
    if _session_factory is None:
        database_url = get_settings().database_url
        if not database_url:
            return None
        _engine = get_engine(database_url)
        _session_factory = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def dispose_db() -> None:
    """Dispose the global engine on shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session."""
    factory = init_db()
    if factory is None:
        raise RuntimeError("DATABASE_URL is not configured")
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def acquire_advisory_lock(session: AsyncSession, key: str) -> None:
    """Block until the session-level advisory lock for ``key`` is held."""
    await session.execute(
        text("SELECT pg_advisory_lock(hashtext(:key))"),
        {"key": key},
    )


async def release_advisory_lock(session: AsyncSession, key: str) -> None:
    """Release advisory lock for ``key``."""
    await session.execute(
        text("SELECT pg_advisory_unlock(hashtext(:key))"),
        {"key": key},
    )
