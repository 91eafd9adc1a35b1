"""
Vote ledger repository.

Implements the append-only, uniquely constrained vote store and the
per-choice counters projected from it.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

import structlog
from sqlalchemy import String, Uuid, func, insert, literal, or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import StorageFailure
from core.security import redact_fingerprint
from db.types import UTCDateTime, utcnow
from models.ballot import Ballot, BallotChoice, BallotKind
from models.vote import VoteOutcome, VoteRecord

logger = structlog.get_logger(__name__)

_VOTE_COLUMNS = [
    "id",
    "ballot_id",
    "ballot_kind",
    "scope_id",
    "exclusivity_scope_id",
    "fingerprint",
    "choice",
    "cast_at",
]


class VoteRepository:
    """
    Repository for the vote ledger.

    The ledger is the only writer of VoteRecords and of
    ``BallotChoice.vote_count``. Both are written in one transaction so a
    reader never sees one without the other.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    # ========================================================================
    # Write Operations
    # ========================================================================

    async def try_cast_vote(
        self,
        ballot_id: str,
        kind: BallotKind,
        scope_id: str,
        exclusivity_scope_id: str,
        fingerprint: str,
        choice: str,
        now: Optional[datetime] = None,
    ) -> VoteOutcome:
        """
        Atomically record a vote and bump its choice counter.

        Steps, in one transaction:
        1. INSERT ... SELECT the vote from the ballot row, only while the
           ballot has no expiry or ``expires_at > now``
        2. The unique index on (ballot_kind, exclusivity_scope_id,
           fingerprint) rejects a second vote in the same scope
        3. Increment the chosen counter; the choice must still exist
        4. Commit

        Returns:
            ACCEPTED, ALREADY_VOTED, POLL_EXPIRED or INVALID_CHOICE

        Raises:
            StorageFailure: On database faults other than the uniqueness conflict
        """
        now = now or utcnow()

        guarded_vote = select(
            literal(str(uuid4()), Uuid(as_uuid=False)),
            Ballot.id,
            Ballot.kind,
            Ballot.scope_id,
            literal(exclusivity_scope_id, String()),
            literal(fingerprint, String()),
            literal(choice, String()),
            literal(now, UTCDateTime()),
        ).where(
            Ballot.id == ballot_id,
            or_(Ballot.expires_at.is_(None), Ballot.expires_at > now),
        )

        try:
            inserted = await self.db.execute(
                insert(VoteRecord.__table__).from_select(_VOTE_COLUMNS, guarded_vote)
            )
            if self._get_rowcount(inserted) == 0:
                # Ballots are never deleted, so the guard failed on expiry
                await self.db.rollback()
                return VoteOutcome.POLL_EXPIRED

            counted = await self.db.execute(
                update(BallotChoice)
                .where(BallotChoice.ballot_id == ballot_id, BallotChoice.choice_key == choice)
                .values(vote_count=BallotChoice.vote_count + 1)
                .execution_options(synchronize_session=False)
            )
            if self._get_rowcount(counted) == 0:
                await self.db.rollback()
                return VoteOutcome.INVALID_CHOICE

            await self.db.commit()

        except IntegrityError:
            await self.db.rollback()
            return VoteOutcome.ALREADY_VOTED

        except DBAPIError as e:
            await self.db.rollback()
            logger.warning(
                "vote_ledger_write_failed",
                kind=kind.value,
                scope_id=scope_id,
                fingerprint=redact_fingerprint(fingerprint),
                error=str(e.orig) if e.orig else str(e),
            )
            raise StorageFailure("Vote ledger write failed") from e

        return VoteOutcome.ACCEPTED

    # ========================================================================
    # Read Operations
    # ========================================================================

    async def find_vote(
        self,
        kind: BallotKind,
        exclusivity_scope_id: str,
        fingerprint: str,
    ) -> Optional[VoteRecord]:
        """Get the vote a fingerprint cast in an exclusivity scope, if any."""
        result = await self.db.execute(
            select(VoteRecord).where(
                VoteRecord.ballot_kind == kind.value,
                VoteRecord.exclusivity_scope_id == exclusivity_scope_id,
                VoteRecord.fingerprint == fingerprint,
            )
        )
        return result.scalar_one_or_none()

    async def votes_for_fingerprint(self, kind: BallotKind, fingerprint: str) -> list[VoteRecord]:
        """Get every vote a fingerprint cast on ballots of one kind."""
        result = await self.db.execute(
            select(VoteRecord)
            .where(VoteRecord.ballot_kind == kind.value, VoteRecord.fingerprint == fingerprint)
            .order_by(VoteRecord.cast_at)
        )
        return list(result.scalars().all())

    async def choice_counts(self, kind: BallotKind, scope_id: str) -> list[tuple[str, str, int]]:
        """
        Get (choice_key, label, vote_count) rows for a ballot.

        One statement, so the counters come from a single snapshot.
        Returns an empty list when the ballot does not exist.
        """
        result = await self.db.execute(
            select(BallotChoice.choice_key, BallotChoice.label, BallotChoice.vote_count)
            .join(Ballot, Ballot.id == BallotChoice.ballot_id)
            .where(Ballot.kind == kind.value, Ballot.scope_id == scope_id)
            .order_by(BallotChoice.order)
        )
        return [(row.choice_key, row.label, int(row.vote_count)) for row in result.all()]

    async def recount(self, ballot_id: str) -> dict[str, int]:
        """Count VoteRecords per choice for a ballot, ignoring the counters."""
        result = await self.db.execute(
            select(VoteRecord.choice, func.count(VoteRecord.id).label("count"))
            .where(VoteRecord.ballot_id == ballot_id)
            .group_by(VoteRecord.choice)
        )
        return {row.choice: int(row[1]) for row in result.all()}

    async def count_by_kind(self) -> dict[str, int]:
        """Get accepted vote counts grouped by ballot kind."""
        result = await self.db.execute(
            select(VoteRecord.ballot_kind, func.count(VoteRecord.id)).group_by(VoteRecord.ballot_kind)
        )
        return {row[0]: int(row[1]) for row in result.all()}
