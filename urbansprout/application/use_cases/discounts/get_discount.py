"""Use case for retrieving a single discount."""

from sqlalchemy.orm import Session

from urbansprout.domain.entities import Discount
from urbansprout.domain.errors import NotFoundError
from urbansprout.infrastructure.repositories import DiscountRepository


def get_discount(session: Session, discount_id: int) -> Discount:
    discount = DiscountRepository(session).get(discount_id)
    if discount is None:
        raise NotFoundError("Discount not found")
    return discount


__all__ = ["get_discount"]
