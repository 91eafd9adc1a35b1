"""
Ballot Service

Entry point for the request layer. Wires the identity anonymizer, the ballot
registry, exclusivity resolution and the vote ledger together:

    origin -> fingerprint -> ballot lookup -> choice check
           -> exclusivity scope -> atomic ledger cast

Business rejections come back as VoteOutcome values. Only StorageFailure is
raised, after a bounded number of attempts.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import InvalidChoice, StorageFailure, UnknownDomain
from core.security import generate_fingerprint, redact_fingerprint
from db.types import utcnow
from models.ballot import Ballot, BallotKind
from models.vote import VoteOutcome
from repositories.vote_repository import VoteRepository
from services.ballot_registry import BallotRegistry, ChoiceSpec
from services.exclusivity import exclusivity_scope_for
from services.poll_lifecycle import expiry_from_duration
from services.tally_service import Tally, TallyService

logger = structlog.get_logger(__name__)


@dataclass
class CastResult:
    """Outcome of a cast attempt."""

    outcome: VoteOutcome
    kind: BallotKind
    scope_id: str
    choice: str

    @property
    def accepted(self) -> bool:
        return self.outcome == VoteOutcome.ACCEPTED


@dataclass
class VoteStatus:
    """Whether a voter has already voted in an exclusivity scope."""

    kind: BallotKind
    scope_id: str
    exclusivity_scope_id: str
    has_voted: bool
    choice: Optional[str] = None
    # Scope the vote was actually cast in (differs for district elections)
    voted_scope_id: Optional[str] = None


class BallotService:
    """Service exposing cast, tally, status and registration operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.registry = BallotRegistry(db)
        self.ledger = VoteRepository(db)
        self.tallies = TallyService(db)

    # ========================================================================
    # Cast
    # ========================================================================

    async def cast_vote(
        self,
        kind: BallotKind,
        scope_id: str,
        origin: Optional[str],
        choice: str,
        now: Optional[datetime] = None,
    ) -> CastResult:
        """
        Cast a vote for an anonymous voter.

        Args:
            kind: Ballot kind
            scope_id: Ballot scope
            origin: Raw network origin of the request (never stored or logged)
            choice: Submitted choice key
            now: Cast time used for the expiry check (defaults to commit time)

        Returns:
            CastResult with the outcome

        Raises:
            StorageFailure: If the storage fault persists after
                VOTE_CAST_MAX_ATTEMPTS attempts
        """
        fingerprint = generate_fingerprint(origin)
        max_attempts = max(1, settings.VOTE_CAST_MAX_ATTEMPTS)

        for attempt in range(1, max_attempts + 1):
            try:
                return await self._cast_once(kind, scope_id, fingerprint, choice, now)
            except StorageFailure:
                if attempt >= max_attempts:
                    logger.error(
                        "vote_cast_failed",
                        kind=kind.value,
                        scope_id=scope_id,
                        attempts=attempt,
                    )
                    raise
                logger.warning(
                    "vote_cast_retry",
                    kind=kind.value,
                    scope_id=scope_id,
                    attempt=attempt,
                )
                await asyncio.sleep(settings.VOTE_CAST_RETRY_DELAY_MS / 1000 * attempt)

        raise StorageFailure("Vote cast did not complete")  # pragma: no cover

    async def _cast_once(
        self,
        kind: BallotKind,
        scope_id: str,
        fingerprint: str,
        choice: str,
        now: Optional[datetime],
    ) -> CastResult:
        """Run one validation + ledger attempt."""
        try:
            ballot = await self.registry.get_domain(kind, scope_id)
            self.registry.validate_choice(ballot, choice)
            ballot_id = str(ballot.id)
        except UnknownDomain:
            return self._rejected(VoteOutcome.UNKNOWN_DOMAIN, kind, scope_id, fingerprint, choice)
        except InvalidChoice:
            return self._rejected(VoteOutcome.INVALID_CHOICE, kind, scope_id, fingerprint, choice)
        except DBAPIError as e:
            await self.db.rollback()
            raise StorageFailure("Ballot lookup failed") from e

        outcome = await self.ledger.try_cast_vote(
            ballot_id=ballot_id,
            kind=kind,
            scope_id=scope_id,
            exclusivity_scope_id=exclusivity_scope_for(kind, scope_id),
            fingerprint=fingerprint,
            choice=choice,
            now=now,
        )

        if outcome != VoteOutcome.ACCEPTED:
            return self._rejected(outcome, kind, scope_id, fingerprint, choice)

        logger.info(
            "vote_accepted",
            kind=kind.value,
            scope_id=scope_id,
            fingerprint=redact_fingerprint(fingerprint),
        )
        return CastResult(outcome=outcome, kind=kind, scope_id=scope_id, choice=choice)

    def _rejected(
        self,
        outcome: VoteOutcome,
        kind: BallotKind,
        scope_id: str,
        fingerprint: str,
        choice: str,
    ) -> CastResult:
        # Expected outcomes, not anomalies
        logger.debug(
            "vote_rejected",
            outcome=outcome.value,
            kind=kind.value,
            scope_id=scope_id,
            fingerprint=redact_fingerprint(fingerprint),
        )
        return CastResult(outcome=outcome, kind=kind, scope_id=scope_id, choice=choice)

    # ========================================================================
    # Read side
    # ========================================================================

    async def get_tally(self, kind: BallotKind, scope_id: str) -> Tally:
        """Get counts and percentages for a ballot (raises UnknownDomain)."""
        return await self.tallies.tally(kind, scope_id)

    async def get_vote_status(
        self,
        kind: BallotKind,
        origin: Optional[str],
        scope_id: str,
    ) -> VoteStatus:
        """
        Check whether the voter behind ``origin`` already voted.

        ``scope_id`` may be a ballot scope or the exclusivity scope itself;
        for district elections any district answers for the whole election.
        """
        fingerprint = generate_fingerprint(origin)
        exclusivity_scope_id = exclusivity_scope_for(kind, scope_id)
        vote = await self.ledger.find_vote(kind, exclusivity_scope_id, fingerprint)
        return VoteStatus(
            kind=kind,
            scope_id=scope_id,
            exclusivity_scope_id=exclusivity_scope_id,
            has_voted=vote is not None,
            choice=vote.choice if vote else None,
            voted_scope_id=vote.scope_id if vote else None,
        )

    async def get_vote_status_map(self, kind: BallotKind, origin: Optional[str]) -> dict[str, str]:
        """Map each scope of ``kind`` the voter voted in to the chosen key."""
        fingerprint = generate_fingerprint(origin)
        votes = await self.ledger.votes_for_fingerprint(kind, fingerprint)
        return {vote.scope_id: vote.choice for vote in votes}

    # ========================================================================
    # Registration
    # ========================================================================

    async def register_domain(
        self,
        kind: BallotKind,
        scope_id: str,
        choices: Optional[Sequence[ChoiceSpec]] = None,
        expires_at: Optional[datetime] = None,
        title: Optional[str] = None,
        duration_hours: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Ballot:
        """
        Register a ballot (see BallotRegistry.register_domain).

        A poll given neither ``expires_at`` nor ``duration_hours`` runs for
        POLL_DEFAULT_DURATION_HOURS. The expiry is computed and validated
        against the same ``now``.
        """
        now = now or utcnow()
        if expires_at is None and (duration_hours is not None or kind == BallotKind.POLL):
            expires_at = expiry_from_duration(
                duration_hours or settings.POLL_DEFAULT_DURATION_HOURS, now
            )
        return await self.registry.register_domain(
            kind=kind,
            scope_id=scope_id,
            choices=choices,
            expires_at=expires_at,
            title=title,
            now=now,
        )

    async def list_domains(self, kind: BallotKind) -> list[Ballot]:
        """List ballots of one kind."""
        return await self.registry.list_domains(kind)
