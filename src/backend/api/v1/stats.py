"""
Platform statistics API endpoint.

Totals are recomputed from the vote ledger on every request.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.deps import get_stats_service
from schemas.tally import PlatformStatsResponse
from services.stats_service import StatsService

router = APIRouter()


@router.get("", response_model=PlatformStatsResponse)
async def get_platform_stats(
    stats_service: Annotated[StatsService, Depends(get_stats_service)],
) -> PlatformStatsResponse:
    """Get vote and ballot totals for the platform."""
    stats = await stats_service.get_stats()
    return PlatformStatsResponse(
        total_votes=stats.total_votes,
        votes_by_kind=stats.votes_by_kind,
        total_ballots=stats.total_ballots,
        active_polls=stats.active_polls,
        computed_at=stats.computed_at,
    )
