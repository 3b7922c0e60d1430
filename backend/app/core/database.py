"""Async database engine and session management.

One engine (and its connection pool) exists per process. It is created
lazily on first use, shared by every request, and disposed on shutdown.
"""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def init_engine(database_url: Optional[str] = None, **engine_kwargs) -> AsyncEngine:
    """Create the process-wide engine and session factory.

    Args:
        database_url: Optional override for settings.DATABASE_URL
        **engine_kwargs: Extra keyword arguments for create_async_engine

    Returns:
        AsyncEngine: The configured engine
    """
    global _engine, _session_maker

    url = database_url or settings.DATABASE_URL
    if url.startswith("postgresql"):
        engine_kwargs.setdefault("pool_size", settings.DATABASE_POOL_SIZE)
        engine_kwargs.setdefault("max_overflow", settings.DATABASE_MAX_OVERFLOW)
        engine_kwargs.setdefault("pool_pre_ping", True)

    _engine = create_async_engine(url, echo=False, **engine_kwargs)
    _session_maker = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


def get_engine() -> AsyncEngine:
    """Get the current engine, creating it on first use."""
    if _engine is None:
        init_engine()
    return _engine


def async_session_maker() -> AsyncSession:
    """Open a new session from the process-wide factory."""
    if _session_maker is None:
        init_engine()
    return _session_maker()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request.

    Services own commit/rollback; anything left open is rolled back here.
    """
    async with async_session_maker() as session:
        yield session


async def create_all() -> None:
    """Create all tables (development and tests; production uses Alembic)."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the engine and its pool at process shutdown."""
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
