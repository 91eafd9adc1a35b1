"""
Async SQLAlchemy session management.

The engine and session factory are created lazily and reused across requests.
PostgreSQL (asyncpg) is used in deployment; SQLite (aiosqlite) for local runs
and tests.
"""

from typing import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings
from db.base import Base

logger = structlog.get_logger(__name__)

# Global engine instances (lazy-initialized)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine(url: str | None = None) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite connections get a generous busy timeout so concurrent writers wait
    for the database lock instead of failing immediately. They keep the
    driver's transaction handling: reads run outside a transaction and take
    no lasting lock, and a write transaction begins at its first write
    statement. Write paths therefore issue their first write before reading
    anything they depend on (the ledger cast is a single guarded INSERT).
    """
    database_url = url or settings.SQLALCHEMY_DATABASE_URL
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            echo=settings.DB_ECHO,
            connect_args={"timeout": 30},
        )
    return create_async_engine(
        database_url,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        pool_pre_ping=True,
    )


def get_engine() -> AsyncEngine:
    """Get or create the process-wide engine."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the process-wide session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a database session.

    Commits on success and rolls back on any error.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables that do not exist yet."""
    import models  # noqa: F401  (registers mappers on Base.metadata)

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", dialect=engine.dialect.name)


async def close_db() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("database_closed")
    _engine = None
    _session_factory = None
