"""
Vote-related Pydantic schemas.

These schemas handle anonymous, one-vote-per-scope casting.
"""

from typing import Optional

from pydantic import BaseModel, Field

from models.ballot import BallotKind
from models.vote import VoteOutcome


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    choice: str = Field(..., min_length=1, max_length=100)


class VoteResponse(BaseModel):
    """Response after a vote was accepted."""

    success: bool
    outcome: VoteOutcome
    message: str
    kind: BallotKind
    scope_id: str


class VoteStatus(BaseModel):
    """Whether the caller has voted in a ballot's exclusivity scope."""

    kind: BallotKind
    scope_id: str
    exclusivity_scope_id: str
    has_voted: bool
    choice: Optional[str] = None
    voted_scope_id: Optional[str] = Field(
        None, description="Scope the vote was cast in (another district for elections)"
    )


class VoteStatusMap(BaseModel):
    """Every scope of one ballot kind the caller voted in."""

    kind: BallotKind
    votes: dict[str, str] = Field(default_factory=dict, description="scope_id -> choice")
