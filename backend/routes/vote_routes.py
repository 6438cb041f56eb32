"""The ballot ledger: one append-only vote per user."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import TokenClaims, get_current_user
from backend.core.errors import Conflict, Internal, InvalidInput
from backend.database import ensure_database_ready, get_db
from backend.models.candidate import Candidate
from backend.models.vote import Vote

router = APIRouter(tags=['votes'])

logger = logging.getLogger(__name__)

ALREADY_VOTED = 'You have already voted.'


class VoteRequest(BaseModel):
    candidate_id: int | None = Field(default=None, validation_alias=AliasChoices('candidate_id', 'candidateId'))


class VoteReceipt(BaseModel):
    vote_id: int
    candidate_id: int
    cast_at: datetime | None = None


class VoteResponse(BaseModel):
    message: str
    receipt: VoteReceipt


class VoteStatusResponse(BaseModel):
    has_voted: bool
    receipt: VoteReceipt | None = None


def _to_receipt(vote: Vote) -> VoteReceipt:
    return VoteReceipt(vote_id=vote.id, candidate_id=vote.candidate_id, cast_at=vote.cast_at)


def cast_vote(db: Session, user_id: int, candidate_id: int | None) -> VoteReceipt:
    """Append ``user_id``'s vote for ``candidate_id`` to the ledger.

    There is no "has this user voted?" read before the insert. The unique
    index on ``votes.user_id`` decides: whichever insert commits first wins
    and every other attempt, concurrent or later, fails with ``Conflict``.
    """
    if candidate_id is None:
        raise InvalidInput('Candidate ID is required.')

    try:
        if db.query(Candidate.id).filter(Candidate.id == candidate_id).first() is None:
            raise InvalidInput('Candidate does not exist.')

        vote = Vote(user_id=user_id, candidate_id=candidate_id)
        db.add(vote)
        db.commit()
        db.refresh(vote)
    except IntegrityError as exc:
        db.rollback()
        # Also raised by the candidate foreign key if it vanished mid-request.
        if find_vote(db, user_id) is None:
            raise InvalidInput('Candidate does not exist.') from exc
        logger.warning('Rejected second vote from user %s', user_id)
        raise Conflict(ALREADY_VOTED) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to cast vote for user %s.', user_id)
        raise Internal('Server error while casting vote.') from exc

    logger.info('User %s cast vote %s', user_id, vote.id)
    return _to_receipt(vote)


def find_vote(db: Session, user_id: int) -> Vote | None:
    try:
        return db.query(Vote).filter(Vote.user_id == user_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to look up vote for user %s.', user_id)
        raise Internal('Server error while checking vote status.') from exc


@router.post('/vote', response_model=VoteResponse, status_code=status.HTTP_201_CREATED)
def vote(
    data: VoteRequest,
    current_user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    receipt = cast_vote(db, current_user.user_id, data.candidate_id)
    return VoteResponse(message='Vote cast successfully!', receipt=receipt)


@router.get('/vote/status', response_model=VoteStatusResponse)
def vote_status(
    current_user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    existing_vote = find_vote(db, current_user.user_id)
    if existing_vote is None:
        return VoteStatusResponse(has_voted=False)
    return VoteStatusResponse(has_voted=True, receipt=_to_receipt(existing_vote))
