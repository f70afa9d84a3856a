"""Database configuration and session management."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from urbansprout.config import get_settings
from urbansprout.domain.errors import TransientStorageError


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


settings = get_settings()

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def _engine_options(database_url: str) -> dict[str, object]:
    """Return ``create_engine`` keyword arguments suited to ``database_url``."""

    if database_url.startswith("sqlite"):
        # Sessions are opened from worker threads by the discount scheduler.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))
SessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)


def initialize_database() -> None:
    """Ensure all ORM models have corresponding database tables."""

    from urbansprout.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=engine, checkfirst=True)


def get_db() -> Generator:
    """Yield a database session and close it afterwards."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(session_factory: SessionFactory) -> Iterator[Session]:
    """Open a session and translate connectivity failures.

    Any uncommitted work is rolled back before the session is closed, so a
    failed write never leaves partial state behind.
    """

    session = session_factory()
    try:
        yield session
    except OperationalError as exc:
        session.rollback()
        logger.warning("Database operation failed: %s", exc)
        raise TransientStorageError("The database is temporarily unavailable") from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "Base",
    "SessionFactory",
    "SessionLocal",
    "engine",
    "get_db",
    "initialize_database",
    "session_scope",
]
