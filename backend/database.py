import logging
import sqlite3
from threading import Lock

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config
from backend.core.errors import Internal

logger = logging.getLogger(__name__)

DATABASE_URL = config.DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=config.DATABASE_ECHO, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_vote_schema_checked = False


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    # SQLite ignores REFERENCES clauses unless asked per connection.
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_vote_schema() -> None:
    global _vote_schema_checked

    if _vote_schema_checked:
        return

    with _schema_lock:
        if _vote_schema_checked:
            return

        inspector = inspect(engine)

        if 'votes' not in inspector.get_table_names():
            _vote_schema_checked = True
            return

        with engine.begin() as connection:
            # One ballot per voter is enforced here, not in application code.
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS uq_votes_user_id ON votes(user_id)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_votes_candidate_id ON votes(candidate_id)')
            )

        _vote_schema_checked = True


def ensure_database_ready() -> None:
    try:
        ensure_vote_schema()
    except SQLAlchemyError as exc:
        logger.exception('Database schema check failed. Check DATABASE_URL and database credentials.')
        raise Internal('Database unavailable.') from exc
