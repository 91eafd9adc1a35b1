"""
Vote ledger model.

Anonymous vote storage keyed by voter fingerprint.
The raw network origin is NEVER stored with the vote - only a keyed one-way hash.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from db.types import UTCDateTime, utcnow


class VoteOutcome(str, Enum):
    """Result of a vote cast attempt."""

    ACCEPTED = "accepted"
    ALREADY_VOTED = "already_voted"
    POLL_EXPIRED = "poll_expired"
    UNKNOWN_DOMAIN = "unknown_domain"
    INVALID_CHOICE = "invalid_choice"


class VoteRecord(Base):
    """
    Accepted vote. Immutable once written.

    INTEGRITY DESIGN:
    - (ballot_kind, exclusivity_scope_id, fingerprint) is unique
    - exclusivity_scope_id equals scope_id except for district elections,
      which all share one nationwide scope
    - records are never updated or deleted
    """

    __tablename__ = "vote_records"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    ballot_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("ballots.id", ondelete="RESTRICT"),
        index=True,
    )

    # Denormalized from the ballot so the uniqueness constraint is one index
    ballot_kind: Mapped[str] = mapped_column(String(32))
    scope_id: Mapped[str] = mapped_column(String(100))
    exclusivity_scope_id: Mapped[str] = mapped_column(String(100))

    # Keyed hash of the network origin (cannot identify the voter)
    fingerprint: Mapped[str] = mapped_column(String(64))

    choice: Mapped[str] = mapped_column(String(100))

    cast_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "ballot_kind",
            "exclusivity_scope_id",
            "fingerprint",
            name="uq_vote_records_kind_scope_fingerprint",
        ),
        Index("ix_vote_records_ballot_choice", "ballot_id", "choice"),
        Index("ix_vote_records_kind_fingerprint", "ballot_kind", "fingerprint"),
    )
