"""
Platform statistics service.

Totals are recomputed from the vote ledger and the ballot registry on every
call. Nothing here is a mutable counter.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from db.types import utcnow
from models.ballot import BallotKind
from repositories.ballot_repository import BallotRepository
from repositories.vote_repository import VoteRepository


@dataclass
class PlatformStats:
    """Platform statistics data."""

    total_votes: int
    votes_by_kind: dict[str, int]
    total_ballots: int
    active_polls: int
    computed_at: datetime


class StatsService:
    """Service for computing platform statistics."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.votes = VoteRepository(db)
        self.ballots = BallotRepository(db)

    async def get_stats(self, now: Optional[datetime] = None) -> PlatformStats:
        """Compute fresh statistics from the ledger."""
        now = now or utcnow()
        by_kind = await self.votes.count_by_kind()

        return PlatformStats(
            total_votes=sum(by_kind.values()),
            votes_by_kind={kind.value: by_kind.get(kind.value, 0) for kind in BallotKind},
            total_ballots=await self.ballots.count_all(),
            active_polls=await self.ballots.count_active_polls(now),
            computed_at=now,
        )
