"""Use case for creating discounts."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from urbansprout.domain.entities import (
    ApplicableTo,
    Discount,
    DiscountKind,
    DiscountStatus,
)
from urbansprout.infrastructure.repositories import DiscountRepository, ProductRepository
from urbansprout.utils import ensure_utc, now_utc

from .applicator import DiscountApplicator
from .validators import validate_discount

logger = logging.getLogger(__name__)


def create_discount(
    session: Session,
    applicator: DiscountApplicator,
    *,
    name: str,
    kind: DiscountKind,
    value: float,
    applicable_to: ApplicableTo,
    start_at: datetime,
    end_at: datetime,
    category: str | None = None,
    product_ids: list[int] | None = None,
    description: str | None = None,
    usage_limit: int | None = None,
    min_order_value: float = 0.0,
    max_discount_amount: float | None = None,
    active: bool = True,
    created_by: int | None = None,
    now: datetime | None = None,
) -> Discount:
    """Create a discount and materialize it right away when already active."""

    moment = now or now_utc()
    entity = Discount(
        id=None,
        name=name.strip() if name else name,
        kind=kind,
        value=value,
        applicable_to=applicable_to,
        start_at=ensure_utc(start_at),
        end_at=ensure_utc(end_at),
        category=category,
        product_ids=list(product_ids or []),
        active=active,
        usage_limit=usage_limit,
        min_order_value=min_order_value or 0.0,
        max_discount_amount=max_discount_amount,
        description=description,
        created_by=created_by,
    )
    validate_discount(entity, ProductRepository(session), now=moment, check_start=True)

    repository = DiscountRepository(session)
    discount = repository.create(entity)

    if discount.status(moment) is DiscountStatus.ACTIVE:
        applicator.apply(discount.id, now=moment)
        session.expire_all()
        discount = repository.get(discount.id) or discount

    logger.info("Discount %s created by user %s", discount.id, created_by)
    return discount


__all__ = ["create_discount"]
