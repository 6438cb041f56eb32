"""Tally engine: aggregates recomputed from the ledger on every request."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import VOTER_ROLE, TokenClaims, require_admin
from backend.core.errors import Internal
from backend.database import ensure_database_ready, get_db
from backend.models.candidate import Candidate
from backend.models.user import User
from backend.models.vote import Vote

router = APIRouter(tags=['results'])

logger = logging.getLogger(__name__)


class CandidateResult(BaseModel):
    id: int
    name: str
    party: str
    description: str
    image_url: str | None = None
    votes: int
    percentage: float


class ResultsResponse(BaseModel):
    results: list[CandidateResult]
    total_votes: int = Field(alias='totalVotes')

    class Config:
        populate_by_name = True


class TurnoutResponse(BaseModel):
    voted: int
    not_voted: int = Field(alias='notVoted')

    class Config:
        populate_by_name = True


class StatsResponse(BaseModel):
    total_votes: int = Field(alias='totalVotes')
    registered_voters: int = Field(alias='registeredVoters')
    active_candidates: int = Field(alias='activeCandidates')

    class Config:
        populate_by_name = True


class VoteDistributionEntry(BaseModel):
    name: str
    votes: int


def calculate_percentage(votes: int, total_votes: int) -> float:
    if total_votes == 0:
        return 0
    # Exact halves round up: 1 of 16 is 6.3, not 6.2.
    percentage = Decimal(votes * 100) / Decimal(total_votes)
    return float(percentage.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def compute_results(db: Session) -> ResultsResponse:
    vote_count = func.count(Vote.id).label('votes')
    rows = (
        db.query(Candidate, vote_count)
        .outerjoin(Vote, Vote.candidate_id == Candidate.id)
        .group_by(Candidate.id)
        .order_by(vote_count.desc(), Candidate.id.asc())
        .all()
    )

    # Every vote references an existing candidate, so this is the ledger size.
    total_votes = sum(votes for _, votes in rows)

    return ResultsResponse(
        results=[
            CandidateResult(
                id=candidate.id,
                name=candidate.name,
                party=candidate.party,
                description=candidate.description or '',
                image_url=candidate.image_url,
                votes=votes,
                percentage=calculate_percentage(votes, total_votes),
            )
            for candidate, votes in rows
        ],
        total_votes=total_votes,
    )


def count_registered_voters(db: Session) -> int:
    return db.query(func.count(User.id)).filter(User.role == VOTER_ROLE).scalar() or 0


def compute_turnout(db: Session) -> TurnoutResponse:
    registered_voters = count_registered_voters(db)
    voted = (
        db.query(func.count(func.distinct(Vote.user_id)))
        .join(User, User.id == Vote.user_id)
        .filter(User.role == VOTER_ROLE)
        .scalar()
        or 0
    )
    return TurnoutResponse(voted=voted, not_voted=max(registered_voters - voted, 0))


def compute_stats(db: Session) -> StatsResponse:
    return StatsResponse(
        total_votes=db.query(func.count(Vote.id)).scalar() or 0,
        registered_voters=count_registered_voters(db),
        active_candidates=db.query(func.count(Candidate.id)).scalar() or 0,
    )


def vote_distribution(db: Session) -> list[VoteDistributionEntry]:
    return [
        VoteDistributionEntry(name=result.name, votes=result.votes)
        for result in compute_results(db).results
    ]


@router.get('/results', response_model=ResultsResponse)
def results(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return compute_results(db)
    except SQLAlchemyError as exc:
        logger.exception('Failed to compute results.')
        raise Internal('Server error while fetching results.') from exc


@router.get('/admin/stats', response_model=StatsResponse)
def admin_stats(
    current_user: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready()

    try:
        return compute_stats(db)
    except SQLAlchemyError as exc:
        logger.exception('Failed to compute admin statistics.')
        raise Internal('Server error while fetching admin statistics.') from exc


@router.get('/admin/vote-distribution', response_model=list[VoteDistributionEntry])
def admin_vote_distribution(
    current_user: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready()

    try:
        return vote_distribution(db)
    except SQLAlchemyError as exc:
        logger.exception('Failed to compute vote distribution.')
        raise Internal('Server error while fetching vote distribution.') from exc


@router.get('/admin/voter-turnout', response_model=TurnoutResponse)
def admin_voter_turnout(
    current_user: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready()

    try:
        return compute_turnout(db)
    except SQLAlchemyError as exc:
        logger.exception('Failed to compute voter turnout.')
        raise Internal('Server error while fetching voter turnout.') from exc
