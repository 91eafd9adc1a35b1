"""
Schema converter functions.

Centralized helpers for converting models and service results to Pydantic schemas.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from models.ballot import BallotKind
from schemas.ballot import Ballot, BallotChoice, PollStateEnum
from schemas.tally import ChoiceResult, ReferendumResult, TallyResult
from services.poll_lifecycle import poll_state, time_remaining_seconds

if TYPE_CHECKING:
    from models.ballot import Ballot as BallotModel
    from services.tally_service import Tally


def ballot_model_to_schema(ballot: "BallotModel", now: Optional[datetime] = None) -> Ballot:
    """
    Convert a Ballot SQLAlchemy model to a Ballot Pydantic schema.

    Polls additionally report their lifecycle state and remaining time.
    """
    is_poll = ballot.kind == BallotKind.POLL.value
    return Ballot(
        id=str(ballot.id),
        kind=BallotKind(ballot.kind),
        scope_id=ballot.scope_id,
        title=ballot.title,
        choices=[
            BallotChoice(key=c.choice_key, label=c.label, order=c.order)
            for c in sorted(ballot.choices, key=lambda x: x.order)
        ],
        created_at=ballot.created_at,
        expires_at=ballot.expires_at,
        state=PollStateEnum(poll_state(ballot.expires_at, now).value) if is_poll else None,
        time_remaining_seconds=time_remaining_seconds(ballot, now) if is_poll else None,
        total_votes=ballot.total_votes,
    )


def tally_to_schema(tally: "Tally") -> TallyResult:
    """Convert a Tally to its response schema."""
    return TallyResult(
        kind=tally.kind,
        scope_id=tally.scope_id,
        total_votes=tally.total,
        results=[
            ChoiceResult(
                choice=c.choice,
                label=c.label,
                vote_count=c.count,
                vote_percentage=c.percentage,
            )
            for c in tally.choices
        ],
    )


def tally_to_referendum_schema(tally: "Tally") -> ReferendumResult:
    """Present a referendum tally as yes/no figures."""
    yes = tally.get("yes")
    no = tally.get("no")
    return ReferendumResult(
        yes_votes=yes.count if yes else 0,
        no_votes=no.count if no else 0,
        total_votes=tally.total,
        yes_percentage=yes.percentage if yes else 0.0,
        no_percentage=no.percentage if no else 0.0,
    )
