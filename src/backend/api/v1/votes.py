"""
Vote casting endpoints.

Voters are anonymous. The request origin is turned into a salted, one-way
fingerprint; the raw origin is never stored or logged. One vote per
fingerprint per exclusivity scope (all districts of an election share one).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from api.deps import get_ballot_service, get_client_origin
from core.exceptions import StorageFailure
from models.ballot import BallotKind
from models.vote import VoteOutcome
from schemas.vote import VoteCreate, VoteResponse, VoteStatus, VoteStatusMap
from services.ballot_service import BallotService

router = APIRouter()

_REJECTIONS = {
    VoteOutcome.UNKNOWN_DOMAIN: (status.HTTP_404_NOT_FOUND, "Ballot not found"),
    VoteOutcome.INVALID_CHOICE: (status.HTTP_400_BAD_REQUEST, "Invalid choice for this ballot"),
    VoteOutcome.ALREADY_VOTED: (status.HTTP_409_CONFLICT, "You have already voted"),
    VoteOutcome.POLL_EXPIRED: (status.HTTP_410_GONE, "This poll has closed"),
}


@router.post(
    "/{kind}/{scope_id}/votes",
    response_model=VoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def cast_vote(
    kind: BallotKind,
    scope_id: str,
    vote_data: VoteCreate,
    origin: Annotated[str, Depends(get_client_origin)],
    service: Annotated[BallotService, Depends(get_ballot_service)],
) -> VoteResponse:
    """
    Cast a vote on a ballot.

    Responses:
    - 201: vote recorded
    - 400: choice not offered by the ballot
    - 404: ballot does not exist
    - 409: already voted in this ballot (or election)
    - 410: poll expired
    - 503: storage unavailable, safe to retry
    """
    try:
        result = await service.cast_vote(kind, scope_id, origin, vote_data.choice)
    except StorageFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Vote could not be recorded, please try again",
        ) from e

    if not result.accepted:
        status_code, message = _REJECTIONS[result.outcome]
        raise HTTPException(
            status_code=status_code,
            detail={"outcome": result.outcome.value, "message": message},
        )

    return VoteResponse(
        success=True,
        outcome=result.outcome,
        message="Vote recorded successfully",
        kind=kind,
        scope_id=scope_id,
    )


@router.get("/{kind}/vote-status", response_model=VoteStatusMap)
async def get_vote_status_map(
    kind: BallotKind,
    origin: Annotated[str, Depends(get_client_origin)],
    service: Annotated[BallotService, Depends(get_ballot_service)],
) -> VoteStatusMap:
    """Map every scope of ``kind`` the caller voted in to the chosen option."""
    votes = await service.get_vote_status_map(kind, origin)
    return VoteStatusMap(kind=kind, votes=votes)


@router.get("/{kind}/{scope_id}/vote-status", response_model=VoteStatus)
async def get_vote_status(
    kind: BallotKind,
    scope_id: str,
    origin: Annotated[str, Depends(get_client_origin)],
    service: Annotated[BallotService, Depends(get_ballot_service)],
) -> VoteStatus:
    """
    Check whether the caller has voted.

    For district elections any district (or the election scope itself)
    answers for the whole election.
    """
    vote_status = await service.get_vote_status(kind, origin, scope_id)
    return VoteStatus(
        kind=vote_status.kind,
        scope_id=vote_status.scope_id,
        exclusivity_scope_id=vote_status.exclusivity_scope_id,
        has_voted=vote_status.has_voted,
        choice=vote_status.choice,
        voted_scope_id=vote_status.voted_scope_id,
    )
