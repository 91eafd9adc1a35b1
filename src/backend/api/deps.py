"""
Shared dependencies for API endpoints.

Includes:
- Client origin extraction (fed to the fingerprint, never stored)
- Service construction per request session
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import UNKNOWN_ORIGIN
from db.session import get_db
from services.ballot_service import BallotService
from services.stats_service import StatsService
from services.tally_service import TallyService


def get_client_origin(request: Request) -> str:
    """Extract the real client address from the request, handling proxies."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First hop is the original client
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_ORIGIN


def get_ballot_service(db: AsyncSession = Depends(get_db)) -> BallotService:
    """Get a BallotService bound to the request session."""
    return BallotService(db)


def get_tally_service(db: AsyncSession = Depends(get_db)) -> TallyService:
    """Get a TallyService bound to the request session."""
    return TallyService(db)


def get_stats_service(db: AsyncSession = Depends(get_db)) -> StatsService:
    """Get a StatsService bound to the request session."""
    return StatsService(db)
