"""Use case for resolving the user behind a bearer token."""

from sqlalchemy.orm import Session

from urbansprout.domain.entities import User
from urbansprout.domain.errors import AuthenticationError
from urbansprout.infrastructure.repositories import UserRepository
from urbansprout.infrastructure.security import decode_access_token


def authenticate_token(session: Session, token: str | None) -> User:
    """Return the active user identified by ``token``.

    Raises :class:`AuthenticationError` when the token is missing, malformed,
    expired, references an unknown user or a deactivated account.
    """

    if not token:
        raise AuthenticationError("Authentication token is required")

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise AuthenticationError("Invalid or expired token") from exc

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid or expired token") from exc

    user = UserRepository(session).get(user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is inactive")
    return user


__all__ = ["authenticate_token"]
