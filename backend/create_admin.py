"""Create an administrator account directly in the database.

The API only lets an existing admin create another admin, so the first one
has to come from here.

Usage:
    python -m backend.create_admin --full-name "Ada Admin" --email ada@admin.gmail.com
"""
import argparse
import getpass
import sys

from fastapi import HTTPException

from backend.auth.dependencies import ADMIN_ROLE
from backend.core import config
from backend.database import Base, SessionLocal, engine
from backend.models.candidate import Candidate
from backend.models.user import User
from backend.models.vote import Vote
from backend.routes.auth_routes import create_user


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--full-name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", help="prompted for when omitted")
    return parser


def create_admin(full_name: str, email: str, password: str, session_factory=SessionLocal) -> User:
    email = email.strip().lower()
    full_name = full_name.strip()
    if not full_name or not password:
        raise ValueError("Full name and password are required.")
    if not config.is_admin_email(email):
        raise ValueError(f"Admin emails must end with @{config.ADMIN_EMAIL_DOMAIN}.")

    db = session_factory()
    try:
        return create_user(db, full_name, email, password, role=ADMIN_ROLE)
    finally:
        db.close()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    password = args.password or getpass.getpass("Password: ")

    Base.metadata.create_all(bind=engine, tables=[User.__table__, Candidate.__table__, Vote.__table__])
    try:
        admin = create_admin(args.full_name, args.email, password)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        sys.exit(2)
    except HTTPException as exc:
        print(exc.detail, file=sys.stderr)
        sys.exit(1)
    print(f"Created admin {admin.email} (id {admin.id})")


if __name__ == "__main__":
    main()
