"""Use case for deleting discounts."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from urbansprout.domain.entities import Discount
from urbansprout.domain.errors import NotFoundError
from urbansprout.infrastructure.repositories import DiscountRepository

from .applicator import DiscountApplicator

logger = logging.getLogger(__name__)


def delete_discount(
    session: Session, applicator: DiscountApplicator, discount_id: int
) -> Discount:
    """Withdraw the discount from every product, then delete it."""

    repository = DiscountRepository(session)
    discount = repository.get(discount_id)
    if discount is None:
        raise NotFoundError("Discount not found")

    removed = applicator.revoke(discount_id)
    session.expire_all()
    repository.delete(discount_id)
    logger.info("Discount %s deleted (%s products updated)", discount_id, removed)
    return discount


__all__ = ["delete_discount"]
