"""Use case listing discounts that can currently be applied to a product."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from urbansprout.domain.entities import Discount
from urbansprout.domain.errors import NotFoundError
from urbansprout.infrastructure.repositories import DiscountRepository, ProductRepository
from urbansprout.utils import now_utc


def list_available_discounts_for_product(
    session: Session, product_id: int, *, now: datetime | None = None
) -> list[Discount]:
    product = ProductRepository(session).get(product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return DiscountRepository(session).list_active_for_product(
        now=now or now_utc(), product_id=product.id, category=product.category
    )


__all__ = ["list_available_discounts_for_product"]
