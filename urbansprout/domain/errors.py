"""Domain level exceptions shared by the use cases and the API layer."""

from __future__ import annotations


class UrbanSproutError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(UrbanSproutError):
    """A required field is missing or a value is malformed."""

    status_code = 400


class AuthenticationError(UrbanSproutError):
    """The bearer credential is missing, invalid or no longer valid."""

    status_code = 401


class ForbiddenError(UrbanSproutError):
    """The caller does not own the requested resource."""

    status_code = 403


class NotFoundError(UrbanSproutError):
    """The requested resource does not exist."""

    status_code = 404


class ConflictError(UrbanSproutError):
    """A concurrent writer kept winning the optimistic lock."""

    status_code = 409


class TransientStorageError(UrbanSproutError):
    """The database could not be reached; no partial state was written."""

    status_code = 500


class TransportPushError(UrbanSproutError):
    """A live channel rejected a message."""


__all__ = [
    "UrbanSproutError",
    "ValidationError",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "TransientStorageError",
    "TransportPushError",
]
