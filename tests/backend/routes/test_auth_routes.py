import pytest
from fastapi import HTTPException

from backend.auth import jwt_handler
from backend.auth.dependencies import TokenClaims, verify_token
from backend.models.user import User
from backend.routes.auth_routes import (
    LoginRequest,
    RegisterRequest,
    login,
    profile,
    register,
    register_admin,
)


def test_register_request_accepts_camel_case_full_name() -> None:
    request = RegisterRequest.model_validate({'fullName': ' Alice ', 'email': ' A@X.com ', 'password': 'p1'})

    assert request.full_name == 'Alice'
    assert request.email == 'a@x.com'


def test_register_creates_voter_with_hashed_password(voting_db) -> None:
    response = register(RegisterRequest(full_name='Alice', email='a@x.com', password='p1'), db=voting_db)

    assert response.message == 'User registered successfully!'
    assert response.user.email == 'a@x.com'
    assert response.user.role == 'voter'
    assert 'password_hash' not in response.user.model_dump()

    stored = voting_db.query(User).filter(User.email == 'a@x.com').one()
    assert stored.password_hash != 'p1'
    assert stored.password_hash.startswith('$argon2')


@pytest.mark.parametrize(
    'payload',
    [
        {'email': 'a@x.com', 'password': 'p1'},
        {'full_name': 'Alice', 'password': 'p1'},
        {'full_name': 'Alice', 'email': 'a@x.com'},
        {'full_name': '   ', 'email': 'a@x.com', 'password': 'p1'},
    ],
)
def test_register_rejects_missing_fields(voting_db, payload: dict) -> None:
    with pytest.raises(HTTPException) as exception_info:
        register(RegisterRequest(**payload), db=voting_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'All fields are required.'


def test_register_rejects_duplicate_email(voting_db) -> None:
    register(RegisterRequest(full_name='Alice', email='a@x.com', password='p1'), db=voting_db)

    with pytest.raises(HTTPException) as exception_info:
        register(RegisterRequest(full_name='Alice Again', email='A@X.COM', password='p2'), db=voting_db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'User with this email already exists.'


def test_login_returns_token_with_identity_and_role(voting_db) -> None:
    registered = register(RegisterRequest(full_name='Alice', email='a@x.com', password='p1'), db=voting_db)

    response = login(LoginRequest(email='a@x.com', password='p1'), db=voting_db)

    assert response.user.id == registered.user.id
    claims = verify_token(response.token)
    assert claims == TokenClaims(user_id=registered.user.id, role='voter')


def test_login_failures_share_one_generic_message(voting_db) -> None:
    register(RegisterRequest(full_name='Alice', email='a@x.com', password='p1'), db=voting_db)

    with pytest.raises(HTTPException) as wrong_password:
        login(LoginRequest(email='a@x.com', password='nope'), db=voting_db)
    with pytest.raises(HTTPException) as unknown_email:
        login(LoginRequest(email='ghost@x.com', password='p1'), db=voting_db)

    assert wrong_password.value.status_code == 401
    assert unknown_email.value.status_code == 401
    assert wrong_password.value.detail == unknown_email.value.detail == 'Invalid credentials.'


def test_login_requires_email_and_password(voting_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(email='a@x.com'), db=voting_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Email and password are required.'


def test_profile_returns_stored_user(voting_db, voter_claims) -> None:
    user = profile(current_user=voter_claims, db=voting_db)

    assert user.id == voter_claims.user_id
    assert user.full_name == 'Vera Voter'


def test_profile_returns_not_found_for_unknown_user(voting_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        profile(current_user=TokenClaims(user_id=999, role='voter'), db=voting_db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'User not found.'


def test_register_admin_creates_admin_in_reserved_domain(voting_db, admin_claims) -> None:
    response = register_admin(
        RegisterRequest(full_name='Second Admin', email='second@admin.gmail.com', password='p1'),
        current_user=admin_claims,
        db=voting_db,
    )

    assert response.user.role == 'admin'
    token = jwt_handler.create_access_token(user_id=response.user.id, role=response.user.role)
    assert verify_token(token).role == 'admin'


def test_register_admin_rejects_email_outside_reserved_domain(voting_db, admin_claims) -> None:
    with pytest.raises(HTTPException) as exception_info:
        register_admin(
            RegisterRequest(full_name='Mallory', email='mallory@example.com', password='p1'),
            current_user=admin_claims,
            db=voting_db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Invalid email domain for an admin account.'


def test_register_admin_forbidden_for_voters(voting_db, voter_claims) -> None:
    with pytest.raises(HTTPException) as exception_info:
        register_admin(
            RegisterRequest(full_name='Sneaky', email='sneaky@admin.gmail.com', password='p1'),
            current_user=voter_claims,
            db=voting_db,
        )

    assert exception_info.value.status_code == 403
    assert voting_db.query(User).filter(User.email == 'sneaky@admin.gmail.com').first() is None
