"""
Tally and statistics Pydantic schemas.
"""

from datetime import datetime

from pydantic import BaseModel

from models.ballot import BallotKind


class ChoiceResult(BaseModel):
    """Aggregated vote results for a ballot choice."""

    choice: str
    label: str
    vote_count: int
    vote_percentage: float


class TallyResult(BaseModel):
    """Per-choice results of a ballot."""

    kind: BallotKind
    scope_id: str
    total_votes: int
    results: list[ChoiceResult]


class ReferendumResult(BaseModel):
    """Yes/no referendum presentation."""

    yes_votes: int
    no_votes: int
    total_votes: int
    yes_percentage: float
    no_percentage: float


class PlatformStatsResponse(BaseModel):
    """Platform-wide vote statistics, recomputed from the ledger."""

    total_votes: int
    votes_by_kind: dict[str, int]
    total_ballots: int
    active_polls: int
    computed_at: datetime
