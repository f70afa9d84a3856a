"""FastAPI dependency utilities."""

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from urbansprout.application.use_cases.discounts import DiscountApplicator
from urbansprout.application.use_cases.users import authenticate_token
from urbansprout.domain.entities import User
from urbansprout.domain.errors import ForbiddenError
from urbansprout.infrastructure.database import get_db
from urbansprout.infrastructure.notifications import (
    ConnectionRegistry,
    NotificationDispatcher,
)
from urbansprout.infrastructure.repositories import NotificationStore
from urbansprout.infrastructure.scheduler import DiscountLifecycleScheduler

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the active user identified by the bearer token."""

    return authenticate_token(db, token)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user has administrator privileges."""

    if not current_user.is_admin():
        raise ForbiddenError("Admin access required")
    return current_user


def get_notification_store(request: Request) -> NotificationStore:
    return request.app.state.notification_store


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher


def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


def get_applicator(request: Request) -> DiscountApplicator:
    return request.app.state.applicator


def get_scheduler(request: Request) -> DiscountLifecycleScheduler:
    return request.app.state.scheduler
