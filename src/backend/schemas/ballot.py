"""
Ballot-related Pydantic schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from models.ballot import BallotKind


class PollStateEnum(str, Enum):
    """Poll lifecycle state."""

    ACTIVE = "active"
    EXPIRED = "expired"


class ChoiceIn(BaseModel):
    """A choice supplied when registering a ballot."""

    label: str = Field(..., min_length=1, max_length=300)
    key: Optional[str] = Field(
        None,
        max_length=100,
        description="Choice id voters submit (generated when omitted)",
    )


class BallotCreate(BaseModel):
    """Schema for registering a new ballot."""

    kind: BallotKind
    scope_id: str = Field(..., min_length=1, max_length=100)
    title: Optional[str] = Field(None, max_length=300)
    choices: list[ChoiceIn] = Field(default_factory=list, max_length=50)
    expires_in_hours: Optional[int] = Field(
        None, ge=1, le=168, description="Poll duration (1 hour to 1 week, 24 when omitted)"
    )
    expires_at: Optional[datetime] = Field(None, description="Explicit poll expiry (timezone-aware)")

    @model_validator(mode="after")
    def check_single_expiry(self) -> "BallotCreate":
        if self.expires_in_hours is not None and self.expires_at is not None:
            raise ValueError("Give either expires_in_hours or expires_at, not both")
        return self


class BallotChoice(BaseModel):
    """A single choice of a ballot."""

    key: str
    label: str
    order: int = 0


class Ballot(BaseModel):
    """Schema for ballot responses."""

    id: str
    kind: BallotKind
    scope_id: str
    title: Optional[str] = None
    choices: list[BallotChoice]
    created_at: datetime
    expires_at: Optional[datetime] = None
    state: Optional[PollStateEnum] = Field(None, description="Only set for polls")
    time_remaining_seconds: Optional[int] = None
    total_votes: int = 0


class BallotList(BaseModel):
    """Ballots of one kind."""

    kind: BallotKind
    ballots: list[Ballot]
