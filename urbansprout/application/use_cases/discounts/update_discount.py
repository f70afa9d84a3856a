"""Use case for editing discounts."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from urbansprout.domain.entities import Discount, DiscountStatus
from urbansprout.domain.errors import NotFoundError
from urbansprout.infrastructure.repositories import DiscountRepository, ProductRepository
from urbansprout.utils import ensure_utc, now_utc

from .applicator import DiscountApplicator
from .validators import validate_discount

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "kind",
        "value",
        "applicable_to",
        "category",
        "product_ids",
        "start_at",
        "end_at",
        "active",
        "usage_limit",
        "min_order_value",
        "max_discount_amount",
    }
)

# Fields copied into product snapshots or deciding which products are covered.
_MATERIALIZED_FIELDS = (
    "name",
    "kind",
    "value",
    "max_discount_amount",
    "applicable_to",
    "category",
    "product_ids",
    "start_at",
    "end_at",
    "active",
)


def update_discount(
    session: Session,
    applicator: DiscountApplicator,
    discount_id: int,
    *,
    changes: dict[str, Any],
    now: datetime | None = None,
) -> Discount:
    """Apply ``changes`` to a discount and re-materialize its effects.

    Existing effects are withdrawn first so that product snapshots never keep
    the values of an older version of the discount. Edits that touch none of
    the materialized fields leave product prices alone.
    """

    moment = now or now_utc()
    repository = DiscountRepository(session)
    current = repository.get(discount_id)
    if current is None:
        raise NotFoundError("Discount not found")

    updates = {key: value for key, value in changes.items() if key in _EDITABLE_FIELDS}
    for key in ("start_at", "end_at"):
        if key in updates:
            updates[key] = ensure_utc(updates[key])
    if "product_ids" in updates:
        updates["product_ids"] = list(updates["product_ids"] or [])
    merged = dataclasses.replace(current, **updates)
    check_start = "start_at" in updates and updates["start_at"] != current.start_at
    validate_discount(
        merged, ProductRepository(session), now=moment, check_start=check_start
    )

    if not any(
        getattr(merged, name) != getattr(current, name) for name in _MATERIALIZED_FIELDS
    ):
        updated = repository.update(merged)
        logger.info("Discount %s updated without touching products", discount_id)
        return updated

    products = ProductRepository(session)
    had_effects = current.auto_applied or bool(products.list_ids_with_discount(discount_id))

    repository.update(dataclasses.replace(merged, auto_applied=False, auto_removed=False))
    if had_effects:
        applicator.revoke(discount_id)
        repository.set_lifecycle_flags(discount_id, auto_applied=False, auto_removed=False)

    if merged.status(moment) is DiscountStatus.ACTIVE:
        applicator.apply(discount_id, now=moment)

    session.expire_all()
    updated = repository.get(discount_id)
    if updated is None:
        raise NotFoundError("Discount not found")
    logger.info("Discount %s updated", discount_id)
    return updated


__all__ = ["update_discount"]
