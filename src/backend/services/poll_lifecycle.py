"""
Poll lifecycle.

Polls are ACTIVE until their expiry instant and EXPIRED from then on; the
transition is terminal. These helpers are read-side only. The authoritative
check happens inside the ledger's cast transaction, which refuses to insert
a vote once ``now >= expires_at``.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from core.config import settings
from core.exceptions import InvalidDomainDefinition
from db.types import utcnow
from models.ballot import Ballot


class PollState(str, Enum):
    """Poll lifecycle state."""

    ACTIVE = "active"  # Accepting votes
    EXPIRED = "expired"  # Terminal, results only


def poll_state(expires_at: Optional[datetime], now: Optional[datetime] = None) -> PollState:
    """State of a poll with the given expiry at ``now``."""
    now = now or utcnow()
    if expires_at is not None and now >= expires_at:
        return PollState.EXPIRED
    return PollState.ACTIVE


def is_active(ballot: Ballot, now: Optional[datetime] = None) -> bool:
    """Check if a ballot currently accepts votes on time grounds."""
    return poll_state(ballot.expires_at, now) == PollState.ACTIVE


def time_remaining_seconds(ballot: Ballot, now: Optional[datetime] = None) -> int:
    """Get seconds remaining until the poll closes (0 once expired)."""
    if ballot.expires_at is None:
        return 0
    now = now or utcnow()
    remaining = (ballot.expires_at - now).total_seconds()
    return max(0, int(remaining))


def validate_poll_expiry(expires_at: Optional[datetime], now: Optional[datetime] = None) -> datetime:
    """
    Validate a poll's expiry at registration time.

    The poll must run for at least POLL_MIN_DURATION_HOURS and at most
    POLL_MAX_DURATION_HOURS.

    Raises:
        InvalidDomainDefinition: If the expiry is missing, naive or out of range
    """
    if expires_at is None:
        raise InvalidDomainDefinition("Polls require an expiry")
    if expires_at.tzinfo is None:
        raise InvalidDomainDefinition("Poll expiry must be timezone-aware")

    now = now or utcnow()
    earliest = now + timedelta(hours=settings.POLL_MIN_DURATION_HOURS)
    latest = now + timedelta(hours=settings.POLL_MAX_DURATION_HOURS)
    if not earliest <= expires_at <= latest:
        raise InvalidDomainDefinition(
            f"Poll must run between {settings.POLL_MIN_DURATION_HOURS} and "
            f"{settings.POLL_MAX_DURATION_HOURS} hours"
        )
    return expires_at


def expiry_from_duration(hours: int, now: Optional[datetime] = None) -> datetime:
    """Compute the expiry instant for a poll running ``hours`` from now."""
    return (now or utcnow()) + timedelta(hours=hours)
