"""Utility script to create an administrator and print a bearer token for it."""

from __future__ import annotations

import argparse
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from urbansprout.domain.entities import ROLE_ADMIN, User
from urbansprout.infrastructure.database import SessionLocal, initialize_database
from urbansprout.infrastructure.repositories import UserRepository
from urbansprout.infrastructure.security import create_user_token


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create an administrator for the UrbanSprout realtime API.",
    )
    parser.add_argument("--name", default="Administrator", help="Display name")
    parser.add_argument("--email", default="admin@example.com", help="Unique e-mail")
    parser.add_argument(
        "--token-minutes",
        type=int,
        default=None,
        help="Lifetime of the printed token (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        repository = UserRepository(session)
        user = repository.get_by_email(args.email)
        if user is None:
            user = repository.create(
                User(id=None, name=args.name, email=args.email, role=ROLE_ADMIN)
            )
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not save the user: {exc}") from exc
    finally:
        session.close()

    if not user.is_admin():
        raise SystemExit(f"User {user.email} exists but is not an administrator")

    expires = timedelta(minutes=args.token_minutes) if args.token_minutes else None
    token = create_user_token(user.id, user.role, expires)
    print(
        "Administrator ready:\n"
        f"  ID: {user.id}\n"
        f"  Name: {user.name}\n"
        f"  Email: {user.email}\n"
        f"  Token: {token}"
    )


if __name__ == "__main__":
    main()
