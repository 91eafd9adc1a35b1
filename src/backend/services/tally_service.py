"""
Tally Aggregator.

Computes per-choice counts and percentages from the vote ledger's counters.
Pure reads: no locks, no writes.
"""

from dataclasses import dataclass, field
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import UnknownDomain
from models.ballot import BallotKind
from repositories.ballot_repository import BallotRepository
from repositories.vote_repository import VoteRepository
from services.ballot_rules import NATIONAL_SCOPE

logger = structlog.get_logger(__name__)


def compute_percentages(counts: list[int]) -> list[float]:
    """
    Percentage share of each count.

    All zeros when the total is zero. Values are not rounded; rounding is a
    presentation concern.
    """
    total = sum(counts)
    if total <= 0:
        return [0.0 for _ in counts]
    return [(count / total) * 100 for count in counts]


@dataclass
class ChoiceTally:
    """Vote count and share for one choice."""

    choice: str
    label: str
    count: int
    percentage: float


@dataclass
class Tally:
    """Derived tally view of a ballot."""

    kind: BallotKind
    scope_id: str
    choices: list[ChoiceTally] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(c.count for c in self.choices)

    def get(self, choice: str) -> Optional[ChoiceTally]:
        for item in self.choices:
            if item.choice == choice:
                return item
        return None


@dataclass
class TallyDrift:
    """Differences between the counters and a ledger recount."""

    kind: BallotKind
    scope_id: str
    counter_counts: dict[str, int]
    ledger_counts: dict[str, int]

    @property
    def is_consistent(self) -> bool:
        keys = set(self.counter_counts) | set(self.ledger_counts)
        return all(self.counter_counts.get(k, 0) == self.ledger_counts.get(k, 0) for k in keys)


class TallyService:
    """Service for reading ballot results."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.votes = VoteRepository(db)
        self.ballots = BallotRepository(db)

    async def tally(self, kind: BallotKind, scope_id: str) -> Tally:
        """
        Get counts and percentages for every choice of a ballot.

        Raises:
            UnknownDomain: If the ballot does not exist
        """
        rows = await self.votes.choice_counts(kind, scope_id)
        if not rows:
            # Every registered ballot has at least one choice
            raise UnknownDomain(kind.value, scope_id)

        percentages = compute_percentages([count for _, _, count in rows])
        return Tally(
            kind=kind,
            scope_id=scope_id,
            choices=[
                ChoiceTally(choice=key, label=label, count=count, percentage=pct)
                for (key, label, count), pct in zip(rows, percentages)
            ],
        )

    async def referendum_result(self) -> Tally:
        """Get the national referendum tally."""
        return await self.tally(BallotKind.REFERENDUM, NATIONAL_SCOPE)

    async def verify(self, kind: BallotKind, scope_id: str) -> TallyDrift:
        """
        Compare the counters of a ballot with a recount of its VoteRecords.

        Raises:
            UnknownDomain: If the ballot does not exist
        """
        ballot = await self.ballots.get_by_scope(kind, scope_id)
        if ballot is None:
            raise UnknownDomain(kind.value, scope_id)

        rows = await self.votes.choice_counts(kind, scope_id)
        drift = TallyDrift(
            kind=kind,
            scope_id=scope_id,
            counter_counts={key: count for key, _, count in rows},
            ledger_counts=await self.votes.recount(ballot.id),
        )
        if not drift.is_consistent:
            logger.error(
                "tally_drift_detected",
                kind=kind.value,
                scope_id=scope_id,
                counters=drift.counter_counts,
                ledger=drift.ledger_counts,
            )
        return drift
