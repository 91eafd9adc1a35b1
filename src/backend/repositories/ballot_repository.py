"""
Ballot repository for database operations.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.ballot import Ballot, BallotChoice, BallotKind


class BallotRepository:
    """Repository for ballot metadata. Never touches vote counters."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_scope(self, kind: BallotKind, scope_id: str) -> Optional[Ballot]:
        """Get a ballot by kind and scope with its choices."""
        result = await self.db.execute(
            select(Ballot)
            .options(selectinload(Ballot.choices))
            .where(Ballot.kind == kind.value, Ballot.scope_id == scope_id)
        )
        return result.scalar_one_or_none()

    async def exists(self, kind: BallotKind, scope_id: str) -> bool:
        """Check if a ballot exists."""
        result = await self.db.execute(
            select(func.count(Ballot.id)).where(Ballot.kind == kind.value, Ballot.scope_id == scope_id)
        )
        return (result.scalar() or 0) > 0

    async def create(
        self,
        kind: BallotKind,
        scope_id: str,
        choices: list[tuple[str, str]],
        expires_at: Optional[datetime] = None,
        title: Optional[str] = None,
    ) -> Ballot:
        """
        Create a ballot with its choices.

        Args:
            kind: Ballot kind
            scope_id: Scope identifier, unique within the kind
            choices: (choice_key, label) pairs in display order
            expires_at: Poll expiry, fixed for the ballot's lifetime
            title: Optional display title

        The caller owns the transaction; a duplicate (kind, scope_id)
        surfaces as IntegrityError on flush.
        """
        ballot = Ballot(
            id=str(uuid4()),
            kind=kind.value,
            scope_id=scope_id,
            title=title,
            expires_at=expires_at,
        )
        self.db.add(ballot)
        await self.db.flush()

        for idx, (key, label) in enumerate(choices):
            choice = BallotChoice(
                id=str(uuid4()),
                ballot_id=ballot.id,
                choice_key=key,
                label=label,
                order=idx,
                vote_count=0,
            )
            self.db.add(choice)

        await self.db.flush()
        await self.db.refresh(ballot, attribute_names=["choices"])

        return ballot

    async def list_by_kind(self, kind: BallotKind) -> list[Ballot]:
        """List all ballots of a kind with their choices."""
        result = await self.db.execute(
            select(Ballot)
            .options(selectinload(Ballot.choices))
            .where(Ballot.kind == kind.value)
            .order_by(Ballot.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_all(self) -> int:
        """Get total number of registered ballots."""
        result = await self.db.execute(select(func.count(Ballot.id)))
        return result.scalar() or 0

    async def count_active_polls(self, now: datetime) -> int:
        """Get number of polls still accepting votes."""
        result = await self.db.execute(
            select(func.count(Ballot.id)).where(
                Ballot.kind == BallotKind.POLL.value,
                Ballot.expires_at > now,
            )
        )
        return result.scalar() or 0
