"""Validation helpers shared by the discount use cases."""

from __future__ import annotations

from datetime import datetime, timedelta

from urbansprout.domain.entities import ApplicableTo, Discount, DiscountKind
from urbansprout.domain.errors import ValidationError
from urbansprout.infrastructure.repositories import ProductRepository
from urbansprout.utils import ensure_utc

START_GRACE_PERIOD = timedelta(minutes=5)


def validate_discount(
    discount: Discount,
    products: ProductRepository,
    *,
    now: datetime,
    check_start: bool = False,
) -> None:
    """Raise :class:`ValidationError` when ``discount`` is not consistent."""

    if not discount.name or not discount.name.strip():
        raise ValidationError("Discount name is required")

    if discount.value is None or discount.value < 0:
        raise ValidationError("Discount value must be zero or greater")
    if discount.kind is DiscountKind.PERCENTAGE and discount.value > 100:
        raise ValidationError("Percentage discount cannot exceed 100%")

    start_at = ensure_utc(discount.start_at)
    end_at = ensure_utc(discount.end_at)
    if start_at is None or end_at is None:
        raise ValidationError("Start and end dates are required")
    if end_at <= start_at:
        raise ValidationError("End date must be after start date")
    if check_start and start_at < ensure_utc(now) - START_GRACE_PERIOD:
        raise ValidationError("Start date cannot be in the past")

    if discount.usage_limit is not None and discount.usage_limit < 1:
        raise ValidationError("Usage limit must be at least 1")
    if discount.used_count < 0:
        raise ValidationError("Used count cannot be negative")
    if discount.min_order_value is not None and discount.min_order_value < 0:
        raise ValidationError("Minimum order value cannot be negative")
    if discount.max_discount_amount is not None and discount.max_discount_amount < 0:
        raise ValidationError("Maximum discount amount cannot be negative")

    if discount.applicable_to is ApplicableTo.CATEGORY and not discount.category:
        raise ValidationError("Category is required for category discounts")
    if discount.applicable_to is ApplicableTo.PRODUCTS:
        if not discount.product_ids:
            raise ValidationError("At least one product is required for product discounts")
        existing = products.filter_existing_ids(discount.product_ids)
        missing = sorted(set(discount.product_ids) - existing)
        if missing:
            joined = ", ".join(str(product_id) for product_id in missing)
            raise ValidationError(f"Unknown products: {joined}")


__all__ = ["START_GRACE_PERIOD", "validate_discount"]
