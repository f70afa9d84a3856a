"""Helpers for issuing and verifying bearer tokens."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from urbansprout.config import get_settings

_ALGORITHM = "HS256"

settings = get_settings()


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(tz=timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode({**data, "exp": expire}, settings.secret_key, algorithm=_ALGORITHM)


def create_user_token(user_id: int, role: str, expires_delta: timedelta | None = None) -> str:
    """Return a token whose subject is ``user_id``."""

    return create_access_token({"sub": str(user_id), "role": role}, expires_delta)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc
