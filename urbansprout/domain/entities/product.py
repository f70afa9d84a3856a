"""Domain entities for the slice of a product touched by discounts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .discount import DiscountKind

APPLIED_BY_AUTOMATIC = "automatic"
APPLIED_BY_MANUAL = "manual"
APPLIED_BY_CATEGORY = "category"


@dataclass
class AppliedDiscount:
    """Snapshot of a discount at the moment it was attached to a product."""

    discount_id: int
    name: str
    kind: DiscountKind
    value: float
    max_discount_amount: float | None = None
    applied_by: str = APPLIED_BY_AUTOMATIC
    applied_at: datetime | None = None


@dataclass
class Product:
    id: int | None
    name: str
    category: str
    regular_price: float
    published: bool = True
    archived: bool = False
    effective_price: float | None = None
    best_discount_id: int | None = None
    version: int = 0
    applied_discounts: list[AppliedDiscount] = field(default_factory=list)

    def has_discount(self, discount_id: int) -> bool:
        return any(entry.discount_id == discount_id for entry in self.applied_discounts)

    @property
    def current_price(self) -> float:
        if self.effective_price is None:
            return self.regular_price
        return self.effective_price


@dataclass
class ProductChange:
    """Entries to attach to and detach from a product in one atomic update."""

    add: list[AppliedDiscount] = field(default_factory=list)
    remove_discount_ids: set[int] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not self.add and not self.remove_discount_ids


__all__ = [
    "APPLIED_BY_AUTOMATIC",
    "APPLIED_BY_CATEGORY",
    "APPLIED_BY_MANUAL",
    "AppliedDiscount",
    "Product",
    "ProductChange",
]
