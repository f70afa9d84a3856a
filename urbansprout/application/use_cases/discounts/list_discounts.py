"""Use case for listing discounts with their derived status."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from urbansprout.domain.entities import Discount, DiscountStatus
from urbansprout.domain.errors import ValidationError
from urbansprout.infrastructure.repositories import DiscountRepository
from urbansprout.utils import now_utc

MAX_PAGE_SIZE = 100


def list_discounts(
    session: Session,
    *,
    status: DiscountStatus | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
    now: datetime | None = None,
) -> tuple[list[Discount], int]:
    """Return one page of discounts and the total number of matches."""

    if page < 1:
        raise ValidationError("Page must be greater than zero")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")

    return DiscountRepository(session).list(
        now=now or now_utc(),
        status=status,
        search=search.strip() if search else None,
        skip=(page - 1) * page_size,
        limit=page_size,
    )


__all__ = ["list_discounts"]
