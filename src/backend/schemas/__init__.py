"""Schemas module initialization."""

from schemas.ballot import Ballot, BallotCreate, BallotList, ChoiceIn
from schemas.tally import PlatformStatsResponse, ReferendumResult, TallyResult
from schemas.vote import VoteCreate, VoteResponse, VoteStatus, VoteStatusMap

__all__ = [
    "Ballot",
    "BallotCreate",
    "BallotList",
    "ChoiceIn",
    "TallyResult",
    "ReferendumResult",
    "PlatformStatsResponse",
    "VoteCreate",
    "VoteResponse",
    "VoteStatus",
    "VoteStatusMap",
]
