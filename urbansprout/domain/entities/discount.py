"""Domain entities describing discounts and their derived status."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ApplicableTo(str, Enum):
    """Which products a discount targets."""

    ALL = "all"
    CATEGORY = "category"
    PRODUCTS = "products"


class DiscountStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    EXPIRED = "expired"
    INACTIVE = "inactive"


@dataclass
class Discount:
    """Time-windowed price reduction managed by administrators.

    ``auto_applied`` and ``auto_removed`` are lifecycle bookkeeping used by the
    scheduler to know whether the discount's effects were already materialized
    on products or already withdrawn. The discount status itself is never
    stored, see :func:`urbansprout.domain.pricing.discount_status`.
    """

    id: int | None
    name: str
    kind: DiscountKind
    value: float
    applicable_to: ApplicableTo
    start_at: datetime
    end_at: datetime
    category: str | None = None
    product_ids: list[int] = field(default_factory=list)
    active: bool = True
    usage_limit: int | None = None
    used_count: int = 0
    min_order_value: float = 0.0
    max_discount_amount: float | None = None
    description: str | None = None
    created_by: int | None = None
    auto_applied: bool = False
    auto_removed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def status(self, now: datetime | None = None) -> DiscountStatus:
        from urbansprout.domain.pricing import discount_status
        from urbansprout.utils import now_utc

        return discount_status(
            now or now_utc(), self.start_at, self.end_at, self.active
        )

    def targets(self, product_id: int, category: str | None) -> bool:
        """Return ``True`` when the applicability rule covers the product."""

        if self.applicable_to is ApplicableTo.ALL:
            return True
        if self.applicable_to is ApplicableTo.CATEGORY:
            return self.category == category
        return product_id in self.product_ids

    @property
    def remaining_usage(self) -> int | None:
        if self.usage_limit is None:
            return None
        return max(0, self.usage_limit - self.used_count)


__all__ = ["ApplicableTo", "Discount", "DiscountKind", "DiscountStatus"]
