"""
API v1 router aggregating all endpoints.
"""

from fastapi import APIRouter

from api.v1.ballots import referendum_router
from api.v1.ballots import router as ballots_router
from api.v1.stats import router as stats_router
from api.v1.votes import router as votes_router

router = APIRouter()

router.include_router(ballots_router, prefix="/ballots", tags=["Ballots"])
router.include_router(votes_router, prefix="/ballots", tags=["Votes"])
router.include_router(referendum_router, prefix="/referendum", tags=["Referendum"])
router.include_router(stats_router, prefix="/stats", tags=["Platform Statistics"])
