import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import AliasChoices, BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler, passwords
from backend.auth.dependencies import ADMIN_ROLE, VOTER_ROLE, TokenClaims, get_current_user
from backend.core import config
from backend.core.errors import Conflict, Forbidden, Internal, InvalidInput, NotFound, Unauthorized
from backend.database import ensure_database_ready, get_db
from backend.models.user import User

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid credentials.'


def _strip(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip()


class RegisterRequest(BaseModel):
    full_name: str | None = Field(default=None, validation_alias=AliasChoices('full_name', 'fullName'))
    email: str | None = None
    password: str | None = None

    @field_validator('full_name')
    @classmethod
    def normalize_full_name(cls, value: str | None) -> str | None:
        return _strip(value)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower()


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower()


class UserResponse(BaseModel):
    id: int
    full_name: str
    email: str
    role: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    message: str
    user: UserResponse


class LoginResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


def validate_registration(data: RegisterRequest) -> tuple[str, str, str]:
    if not data.full_name or not data.email or not data.password:
        raise InvalidInput('All fields are required.')
    if '@' not in data.email:
        raise InvalidInput('A valid email address is required.')
    return data.full_name, data.email, data.password


def create_user(db: Session, full_name: str, email: str, password: str, role: str) -> User:
    """Insert a user, translating a duplicate email into ``Conflict``.

    The explicit lookup gives the common case a clean error; the unique index
    on ``users.email`` still settles two registrations racing for one address.
    """
    try:
        if db.query(User).filter(User.email == email).first():
            raise Conflict('User with this email already exists.')

        user = User(
            full_name=full_name,
            email=email,
            password_hash=passwords.hash_password(password),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError as exc:
        db.rollback()
        raise Conflict('User with this email already exists.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create user.')
        raise Internal('Server error during registration.') from exc


def register_user(db: Session, data: RegisterRequest) -> User:
    full_name, email, password = validate_registration(data)
    user = create_user(db, full_name, email, password, role=VOTER_ROLE)
    logger.info('Registered voter %s', user.id)
    return user


def register_admin_user(db: Session, current_user: TokenClaims, data: RegisterRequest) -> User:
    if current_user.role != ADMIN_ROLE:
        logger.warning('User %s attempted to create an admin account', current_user.user_id)
        raise Forbidden('Forbidden: Only admins can create new admin accounts.')

    full_name, email, password = validate_registration(data)
    if not config.is_admin_email(email):
        raise InvalidInput('Invalid email domain for an admin account.')

    user = create_user(db, full_name, email, password, role=ADMIN_ROLE)
    logger.info('Admin %s created admin account %s', current_user.user_id, user.id)
    return user


def authenticate_user(db: Session, email: str | None, password: str | None) -> tuple[str, User]:
    if not email or not password:
        raise InvalidInput('Email and password are required.')

    try:
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load user during login.')
        raise Internal('Server error during login.') from exc

    if user is None:
        passwords.burn_verification(password)
        logger.warning('Failed login attempt')
        raise Unauthorized(INVALID_CREDENTIALS)
    if not passwords.verify_password(password, user.password_hash):
        logger.warning('Failed login attempt for user %s', user.id)
        raise Unauthorized(INVALID_CREDENTIALS)

    token = jwt_handler.create_access_token(user_id=user.id, role=user.role)
    return token, user


@router.post('/register', response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    ensure_database_ready()
    user = register_user(db, data)
    return RegisterResponse(message='User registered successfully!', user=UserResponse.model_validate(user))


@router.post('/login', response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    ensure_database_ready()
    token, user = authenticate_user(db, data.email, data.password)
    return LoginResponse(message='Login successful!', token=token, user=UserResponse.model_validate(user))


@router.get('/profile', response_model=UserResponse)
def profile(current_user: TokenClaims = Depends(get_current_user), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        user = db.query(User).filter(User.id == current_user.user_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load profile.')
        raise Internal('Server error fetching profile.') from exc

    if user is None:
        raise NotFound('User not found.')
    return user


@router.post('/admin/register', response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register_admin(
    data: RegisterRequest,
    current_user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    user = register_admin_user(db, current_user, data)
    return RegisterResponse(message='Admin user registered successfully!', user=UserResponse.model_validate(user))
