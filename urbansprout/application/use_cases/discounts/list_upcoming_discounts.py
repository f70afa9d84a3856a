"""Use case listing discounts that are about to start or just started."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from urbansprout.domain.entities import Discount, Product
from urbansprout.infrastructure.repositories import DiscountRepository, ProductRepository
from urbansprout.utils import now_utc

from .applicator import affected_product_ids

RECENT_WINDOW = timedelta(hours=24)
PREVIEW_LIMIT = 20


@dataclass
class UpcomingDiscount:
    discount: Discount
    product_count: int
    products: list[Product] = field(default_factory=list)


def list_upcoming_discounts(
    session: Session,
    *,
    category: str | None = None,
    limit: int = 50,
    now: datetime | None = None,
) -> list[UpcomingDiscount]:
    """Return upcoming discounts with a preview of the products they touch.

    Discounts whose effects are already materialized report the products
    holding them; the others report the products their rule would target.
    """

    moment = now or now_utc()
    products = ProductRepository(session)
    discounts = DiscountRepository(session).list_upcoming(
        now=moment, since=moment - RECENT_WINDOW, category=category, limit=limit
    )

    results: list[UpcomingDiscount] = []
    for discount in discounts:
        if discount.auto_applied:
            product_ids = products.list_ids_with_discount(discount.id)
        else:
            product_ids = affected_product_ids(products, discount)
        results.append(
            UpcomingDiscount(
                discount=discount,
                product_count=len(product_ids),
                products=products.get_many(product_ids, limit=PREVIEW_LIMIT),
            )
        )
    return results


__all__ = ["UpcomingDiscount", "list_upcoming_discounts"]
