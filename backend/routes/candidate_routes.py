import logging

from fastapi import APIRouter, Depends, status
from pydantic import AliasChoices, BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import TokenClaims, get_current_user, require_admin
from backend.core.errors import Conflict, Internal, InvalidInput, NotFound
from backend.database import ensure_database_ready, get_db
from backend.models.candidate import Candidate
from backend.models.vote import Vote

router = APIRouter(tags=['candidates'])

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 2000


class CandidateRequest(BaseModel):
    name: str | None = None
    party: str | None = None
    description: str | None = None
    image_url: str | None = Field(default=None, validation_alias=AliasChoices('image_url', 'imageUrl'))

    @field_validator('name', 'party', 'image_url')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str:
        normalized = (value or '').strip()
        if len(normalized) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f'Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer.')
        return normalized


class CandidateResponse(BaseModel):
    id: int
    name: str
    party: str
    description: str
    image_url: str | None = None

    class Config:
        from_attributes = True


class CandidateMutationResponse(BaseModel):
    message: str
    candidate: CandidateResponse


class MessageResponse(BaseModel):
    message: str


def validate_candidate_fields(data: CandidateRequest) -> None:
    if not data.name or not data.party:
        raise InvalidInput('Candidate name and party are required.')


def get_candidate_or_404(db: Session, candidate_id: int) -> Candidate:
    candidate = db.query(Candidate).filter(Candidate.id == candidate_id).first()
    if candidate is None:
        raise NotFound('Candidate not found.')
    return candidate


@router.get('/candidates', response_model=list[CandidateResponse])
def list_candidates(
    current_user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready()

    try:
        return db.query(Candidate).order_by(Candidate.id.asc()).all()
    except SQLAlchemyError as exc:
        logger.exception('Failed to list candidates.')
        raise Internal('Server error fetching candidates.') from exc


@router.post('/admin/candidates', response_model=CandidateMutationResponse, status_code=status.HTTP_201_CREATED)
def create_candidate(
    data: CandidateRequest,
    current_user: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    validate_candidate_fields(data)
    ensure_database_ready()

    try:
        candidate = Candidate(
            name=data.name,
            party=data.party,
            description=data.description or '',
            image_url=data.image_url,
        )
        db.add(candidate)
        db.commit()
        db.refresh(candidate)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to add candidate.')
        raise Internal('Server error while adding candidate.') from exc

    logger.info('Admin %s added candidate %s', current_user.user_id, candidate.id)
    return CandidateMutationResponse(
        message='Candidate added successfully!',
        candidate=CandidateResponse.model_validate(candidate),
    )


@router.put('/admin/candidates/{candidate_id}', response_model=CandidateMutationResponse)
def update_candidate(
    candidate_id: int,
    data: CandidateRequest,
    current_user: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    validate_candidate_fields(data)
    ensure_database_ready()

    try:
        candidate = get_candidate_or_404(db, candidate_id)
        candidate.name = data.name
        candidate.party = data.party
        candidate.description = data.description or ''
        candidate.image_url = data.image_url
        db.commit()
        db.refresh(candidate)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to update candidate %s.', candidate_id)
        raise Internal('Server error while updating candidate.') from exc

    logger.info('Admin %s updated candidate %s', current_user.user_id, candidate_id)
    return CandidateMutationResponse(
        message='Candidate updated successfully!',
        candidate=CandidateResponse.model_validate(candidate),
    )


@router.delete('/admin/candidates/{candidate_id}', response_model=MessageResponse)
def delete_candidate(
    candidate_id: int,
    current_user: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        candidate = get_candidate_or_404(db, candidate_id)

        # Votes are never rewritten, so a candidate holding ballots stays.
        has_votes = db.query(Vote.id).filter(Vote.candidate_id == candidate_id).first() is not None
        if has_votes:
            raise Conflict('Candidate has received votes and cannot be deleted.')

        db.delete(candidate)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict('Candidate has received votes and cannot be deleted.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to delete candidate %s.', candidate_id)
        raise Internal('Server error while deleting candidate.') from exc

    logger.info('Admin %s deleted candidate %s', current_user.user_id, candidate_id)
    return MessageResponse(message='Candidate deleted successfully!')
