"""Use cases related to user identity."""

from .authenticate_token import authenticate_token

__all__ = ["authenticate_token"]
