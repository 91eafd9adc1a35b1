"""
Ballot model.

A ballot is one vote-able instance: a case, a poll, the national party
ballot, one district's election, or the referendum. Per-choice vote counts
are a projection of the vote ledger and are only written by the ledger's
cast transaction.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base
from db.types import UTCDateTime, utcnow


class BallotKind(str, Enum):
    """Kind of ballot, determining its choice set and exclusivity rules."""

    ISSUE_SUPPORT = "issue_support"  # Support for a submitted case
    POLL = "poll"  # Multi-option poll with an expiry
    PARTY_PREFERENCE = "party_preference"  # Single national party choice
    DISTRICT_ELECTION = "district_election"  # Candidate vote in one district
    REFERENDUM = "referendum"  # National yes/no referendum


class Ballot(Base):
    """
    Ballot metadata owned by the ballot registry.

    ``(kind, scope_id)`` identifies exactly one ballot. Polls carry an
    ``expires_at`` fixed at registration and never updated.
    """

    __tablename__ = "ballots"

    __table_args__ = (
        UniqueConstraint("kind", "scope_id", name="uq_ballots_kind_scope"),
        Index("ix_ballots_kind_expires", "kind", "expires_at"),
    )

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    kind: Mapped[str] = mapped_column(String(32), index=True)
    scope_id: Mapped[str] = mapped_column(String(100))
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Only set for polls
    expires_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    # Relationships
    choices = relationship(
        "BallotChoice",
        back_populates="ballot",
        cascade="all, delete-orphan",
        order_by="BallotChoice.order",
    )

    @property
    def total_votes(self) -> int:
        """Total votes according to the loaded choice counters."""
        return sum(c.vote_count for c in self.choices)

    def __repr__(self) -> str:
        return f"<Ballot(kind={self.kind}, scope={self.scope_id})>"


class BallotChoice(Base):
    """
    One valid choice of a ballot.

    ``choice_key`` is what voters submit (option id, party id, candidate id,
    ``yes``/``no``, ``support``). ``vote_count`` mirrors the number of
    VoteRecords for this choice.
    """

    __tablename__ = "ballot_choices"

    __table_args__ = (
        UniqueConstraint("ballot_id", "choice_key", name="uq_ballot_choices_ballot_key"),
    )

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    ballot_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("ballots.id", ondelete="CASCADE"),
        index=True,
    )

    choice_key: Mapped[str] = mapped_column(String(100))
    label: Mapped[str] = mapped_column(Text)
    order: Mapped[int] = mapped_column(Integer, default=0)

    # Aggregated vote count
    vote_count: Mapped[int] = mapped_column(Integer, default=0)

    # Relationships
    ballot = relationship("Ballot", back_populates="choices")
