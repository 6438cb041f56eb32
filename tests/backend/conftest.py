import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

from backend.auth import passwords  # noqa: E402
from backend.auth.dependencies import TokenClaims  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.models.candidate import Candidate  # noqa: E402
from backend.models.user import User  # noqa: E402
from backend.models.vote import Vote  # noqa: E402

TABLES = [User.__table__, Candidate.__table__, Vote.__table__]


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    for module in (
        'backend.routes.auth_routes',
        'backend.routes.candidate_routes',
        'backend.routes.vote_routes',
        'backend.routes.results_routes',
    ):
        monkeypatch.setattr(f'{module}.ensure_database_ready', lambda: None)


@pytest.fixture
def voting_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def make_user(voting_db):
    def _make_user(email: str, role: str = 'voter', password: str = 'secret', full_name: str = 'Test User') -> User:
        user = User(
            full_name=full_name,
            email=email,
            password_hash=passwords.hash_password(password),
            role=role,
        )
        voting_db.add(user)
        voting_db.commit()
        voting_db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_candidate(voting_db):
    def _make_candidate(name: str, party: str = 'Independent', description: str = '') -> Candidate:
        candidate = Candidate(name=name, party=party, description=description)
        voting_db.add(candidate)
        voting_db.commit()
        voting_db.refresh(candidate)
        return candidate

    return _make_candidate


@pytest.fixture
def admin_claims(make_user) -> TokenClaims:
    admin = make_user('root@admin.gmail.com', role='admin', full_name='Root Admin')
    return TokenClaims(user_id=admin.id, role='admin')


@pytest.fixture
def voter_claims(make_user) -> TokenClaims:
    voter = make_user('voter@example.com', full_name='Vera Voter')
    return TokenClaims(user_id=voter.id, role='voter')
