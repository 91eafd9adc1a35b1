"""
Ballot Domain Registry.

Owns ballot existence and validity: which ballots exist, which choices they
accept right now, and when polls expire. Registration enforces the rules of
each ballot kind.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence
from uuid import uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import (
    DomainAlreadyExists,
    InvalidChoice,
    InvalidDomainDefinition,
    UnknownDomain,
)
from db.types import utcnow
from models.ballot import Ballot, BallotChoice, BallotKind
from repositories.ballot_repository import BallotRepository
from services.ballot_rules import NATIONAL_SCOPE, BallotRule, get_rule
from services.poll_lifecycle import is_active, validate_poll_expiry

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChoiceSpec:
    """A choice supplied at registration. ``key`` is generated when omitted."""

    label: str
    key: Optional[str] = None


class BallotRegistry:
    """Service for registering and resolving ballots."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = BallotRepository(db)

    # ========================================================================
    # Lookup
    # ========================================================================

    async def get_domain(self, kind: BallotKind, scope_id: str) -> Ballot:
        """
        Get a ballot with its live choice set.

        Raises:
            UnknownDomain: If no ballot is registered for (kind, scope_id)
        """
        ballot = await self.repo.get_by_scope(kind, scope_id)
        if ballot is None:
            raise UnknownDomain(kind.value, scope_id)
        return ballot

    @staticmethod
    def validate_choice(ballot: Ballot, choice: str) -> BallotChoice:
        """
        Match a submitted choice against the ballot's current choices.

        Raises:
            InvalidChoice: If the choice is not offered by the ballot
        """
        for option in ballot.choices:
            if option.choice_key == choice:
                return option
        raise InvalidChoice(choice, ballot.scope_id)

    async def list_domains(self, kind: BallotKind, now: Optional[datetime] = None) -> list[Ballot]:
        """
        List ballots of one kind.

        Polls come back active first, then by expiry (latest first).
        """
        ballots = await self.repo.list_by_kind(kind)
        if kind == BallotKind.POLL:
            now = now or utcnow()
            ballots.sort(key=lambda b: b.expires_at.timestamp() if b.expires_at else 0.0, reverse=True)
            ballots.sort(key=lambda b: not is_active(b, now))
        return ballots

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
        now: Optional[datetime] = None,
    ) -> Ballot:
        """
        Register a new ballot.

        Args:
            kind: Ballot kind
            scope_id: Entity the ballot belongs to (case id, poll id, district id, "national")
            choices: Choice set for polls and district elections; must be
                omitted or match the fixed set for the other kinds
            expires_at: Required for polls, forbidden otherwise
            title: Optional display title
            now: Registration time (defaults to the current time)

        Raises:
            InvalidDomainDefinition: If the request breaks the kind's rules
            DomainAlreadyExists: If (kind, scope_id) is already registered
        """
        rule = get_rule(kind)
        scope_id = (scope_id or "").strip()
        if not scope_id:
            raise InvalidDomainDefinition("Scope id must not be empty")
        if rule.fixed_scope_id and scope_id != rule.fixed_scope_id:
            raise InvalidDomainDefinition(f"{kind.value} ballots must use scope '{rule.fixed_scope_id}'")

        choice_pairs = self._resolve_choices(rule, list(choices or []))

        if rule.requires_expiry:
            expires_at = validate_poll_expiry(expires_at, now)
        elif expires_at is not None:
            raise InvalidDomainDefinition(f"{kind.value} ballots do not expire")

        try:
            ballot = await self.repo.create(
                kind=kind,
                scope_id=scope_id,
                choices=choice_pairs,
                expires_at=expires_at,
                title=title,
            )
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DomainAlreadyExists(kind.value, scope_id) from e

        logger.info(
            "ballot_registered",
            kind=kind.value,
            scope_id=scope_id,
            choices=len(choice_pairs),
            expires_at=expires_at.isoformat() if expires_at else None,
        )
        return ballot

    async def ensure_national_ballots(self) -> list[Ballot]:
        """
        Register the party preference and referendum ballots if missing.

        Safe to run on every startup and from several instances at once.
        """
        ballots = []
        for kind in (BallotKind.PARTY_PREFERENCE, BallotKind.REFERENDUM):
            ballot = await self.repo.get_by_scope(kind, NATIONAL_SCOPE)
            if ballot is None:
                try:
                    ballot = await self.register_domain(kind, NATIONAL_SCOPE)
                except DomainAlreadyExists:
                    ballot = await self.get_domain(kind, NATIONAL_SCOPE)
            ballots.append(ballot)
        return ballots

    def _resolve_choices(self, rule: BallotRule, choices: list[ChoiceSpec]) -> list[tuple[str, str]]:
        """Validate supplied choices and return (key, label) pairs."""
        if rule.has_fixed_choices:
            if choices and sorted(c.key or c.label for c in choices) != sorted(rule.fixed_choice_keys):
                raise InvalidDomainDefinition(f"{rule.kind.value} ballots have a fixed choice set")
            return list(rule.fixed_choices or ())

        pairs: list[tuple[str, str]] = []
        for option in choices:
            label = (option.label or "").strip()
            if not label:
                raise InvalidDomainDefinition("Choice labels must not be empty")
            key = (option.key or "").strip() or str(uuid4())
            pairs.append((key, label))

        keys = [key for key, _ in pairs]
        if len(set(keys)) != len(keys):
            raise InvalidDomainDefinition("Choice keys must be unique")

        if rule.kind == BallotKind.POLL:
            if not settings.POLL_MIN_OPTIONS <= len(pairs) <= settings.POLL_MAX_OPTIONS:
                raise InvalidDomainDefinition(
                    f"Polls need between {settings.POLL_MIN_OPTIONS} and {settings.POLL_MAX_OPTIONS} options"
                )
        elif not pairs:
            raise InvalidDomainDefinition(f"{rule.kind.value} ballots need at least one choice")

        return pairs
