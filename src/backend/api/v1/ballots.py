"""
Ballot registration and result endpoints.

Ballots are addressed by (kind, scope_id). Party preference and referendum
ballots always exist under the scope "national".
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from api.deps import get_ballot_service, get_tally_service
from core.exceptions import DomainAlreadyExists, InvalidDomainDefinition, UnknownDomain
from db.types import utcnow
from models.ballot import BallotKind
from schemas.ballot import Ballot, BallotCreate, BallotList
from schemas.converters import ballot_model_to_schema, tally_to_referendum_schema, tally_to_schema
from schemas.tally import ReferendumResult, TallyResult
from services.ballot_registry import ChoiceSpec
from services.ballot_service import BallotService
from services.tally_service import TallyService

router = APIRouter()
referendum_router = APIRouter()


@router.post("", response_model=Ballot, status_code=status.HTTP_201_CREATED)
async def register_ballot(
    ballot_data: BallotCreate,
    service: Annotated[BallotService, Depends(get_ballot_service)],
) -> Ballot:
    """
    Register a new ballot.

    Polls need 2-6 options and an expiry between 1 hour and 1 week out,
    given as ``expires_in_hours`` or ``expires_at`` (24 hours when neither
    is set). Issue support, party preference and referendum ballots use
    their fixed choice sets.
    """
    now = utcnow()
    try:
        ballot = await service.register_domain(
            kind=ballot_data.kind,
            scope_id=ballot_data.scope_id,
            choices=[ChoiceSpec(label=c.label, key=c.key) for c in ballot_data.choices],
            expires_at=ballot_data.expires_at,
            title=ballot_data.title,
            duration_hours=ballot_data.expires_in_hours,
            now=now,
        )
    except InvalidDomainDefinition as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except DomainAlreadyExists as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return ballot_model_to_schema(ballot, now)


@router.get("/{kind}", response_model=BallotList)
async def list_ballots(
    kind: BallotKind,
    service: Annotated[BallotService, Depends(get_ballot_service)],
) -> BallotList:
    """List ballots of one kind. Polls come back active first."""
    now = utcnow()
    ballots = await service.list_domains(kind)
    return BallotList(kind=kind, ballots=[ballot_model_to_schema(b, now) for b in ballots])


@router.get("/{kind}/{scope_id}/tally", response_model=TallyResult)
async def get_tally(
    kind: BallotKind,
    scope_id: str,
    tallies: Annotated[TallyService, Depends(get_tally_service)],
) -> TallyResult:
    """Get per-choice counts and percentages for a ballot."""
    try:
        tally = await tallies.tally(kind, scope_id)
    except UnknownDomain as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return tally_to_schema(tally)


@referendum_router.get("/result", response_model=ReferendumResult)
async def get_referendum_result(
    tallies: Annotated[TallyService, Depends(get_tally_service)],
) -> ReferendumResult:
    """Get the national referendum result as yes/no figures."""
    try:
        tally = await tallies.referendum_result()
    except UnknownDomain as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return tally_to_referendum_schema(tally)
