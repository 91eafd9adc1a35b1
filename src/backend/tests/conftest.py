"""
Pytest fixtures for ballot engine backend tests.
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# Set test environment variables before importing app
os.environ.setdefault("FINGERPRINT_SALT", "test-fingerprint-salt")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test-ballots.db")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
async def db_engine(tmp_path: Any) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database file with all tables."""
    import models  # noqa: F401
    from db.base import Base
    from db.session import create_engine

    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ballots.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to the test database.

    SQLite serializes transactions, so tests open one session at a time
    (or one per concurrent task) and close it before the next.
    """
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def national_ballots(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Register the party preference and referendum ballots."""
    from services.ballot_registry import BallotRegistry

    async with session_factory() as session:
        await BallotRegistry(session).ensure_national_ballots()


@pytest.fixture
def register_ballot(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[str]]:
    """Register a ballot in its own session and return its id."""
    from models.ballot import BallotKind
    from services.ballot_registry import BallotRegistry, ChoiceSpec

    async def _register(
        kind: BallotKind,
        scope_id: str,
        choices: Optional[list[str]] = None,
        expires_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> str:
        async with session_factory() as session:
            ballot = await BallotRegistry(session).register_domain(
                kind=kind,
                scope_id=scope_id,
                choices=[ChoiceSpec(label=key.upper(), key=key) for key in choices or []],
                expires_at=expires_at,
                now=now,
            )
            return str(ballot.id)

    return _register


@pytest.fixture
def register_poll(
    register_ballot: Callable[..., Awaitable[str]],
) -> Callable[..., Awaitable[str]]:
    """Register a poll with the given options expiring in one hour."""
    from db.types import utcnow
    from models.ballot import BallotKind

    async def _register(scope_id: str, options: list[str], hours: int = 1) -> str:
        now = utcnow()
        return await register_ballot(
            BallotKind.POLL,
            scope_id,
            choices=options,
            expires_at=now + timedelta(hours=hours),
            now=now,
        )

    return _register


@pytest.fixture
def assert_one_vote_per_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], Awaitable[None]]:
    """Scan the whole ledger for duplicate (kind, exclusivity scope, fingerprint) rows."""
    from models.vote import VoteRecord

    async def _scan() -> None:
        async with session_factory() as session:
            result = await session.execute(
                select(
                    VoteRecord.ballot_kind,
                    VoteRecord.exclusivity_scope_id,
                    VoteRecord.fingerprint,
                    func.count(VoteRecord.id),
                )
                .group_by(
                    VoteRecord.ballot_kind,
                    VoteRecord.exclusivity_scope_id,
                    VoteRecord.fingerprint,
                )
                .having(func.count(VoteRecord.id) > 1)
            )
            duplicates = result.all()
        assert duplicates == []

    return _scan


# =============================================================================
# API
# =============================================================================


@pytest.fixture
async def app() -> Any:
    """Create FastAPI application for testing."""
    from main import app as fastapi_app

    return fastapi_app


@pytest.fixture
async def client(
    app: Any,
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client backed by the per-test database."""
    from db.session import get_db

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()

