"""Pydantic schemas for discount administration."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from urbansprout.domain.entities import (
    AppliedDiscount,
    ApplicableTo,
    Discount,
    DiscountKind,
    DiscountStatus,
    Product,
)

from .base import CamelModel


class DiscountCreate(CamelModel):
    name: str
    description: str | None = None
    kind: DiscountKind = Field(alias="type")
    value: float
    applicable_to: ApplicableTo = ApplicableTo.ALL
    category: str | None = None
    product_ids: list[int] = Field(default_factory=list, alias="products")
    start_at: datetime = Field(alias="startDate")
    end_at: datetime = Field(alias="endDate")
    usage_limit: int | None = None
    min_order_value: float = 0.0
    max_discount_amount: float | None = None
    active: bool = True


class DiscountUpdate(CamelModel):
    """Partial update; only the fields sent by the client are changed."""

    name: str | None = None
    description: str | None = None
    kind: DiscountKind | None = Field(default=None, alias="type")
    value: float | None = None
    applicable_to: ApplicableTo | None = None
    category: str | None = None
    product_ids: list[int] | None = Field(default=None, alias="products")
    start_at: datetime | None = Field(default=None, alias="startDate")
    end_at: datetime | None = Field(default=None, alias="endDate")
    usage_limit: int | None = None
    min_order_value: float | None = None
    max_discount_amount: float | None = None
    active: bool | None = None

    def changes(self) -> dict[str, Any]:
        values = self.model_dump(exclude_unset=True)
        # Explicit nulls only make sense for the optional limits.
        nullable = {"description", "category", "usage_limit", "max_discount_amount"}
        return {
            key: value
            for key, value in values.items()
            if value is not None or key in nullable
        }


class DiscountRead(CamelModel):
    id: int
    name: str
    description: str | None = None
    kind: DiscountKind = Field(alias="type")
    value: float
    applicable_to: ApplicableTo
    category: str | None = None
    product_ids: list[int] = Field(default_factory=list, alias="products")
    start_at: datetime = Field(alias="startDate")
    end_at: datetime = Field(alias="endDate")
    active: bool
    status: DiscountStatus
    usage_limit: int | None = None
    used_count: int = 0
    remaining_usage: int | None = None
    min_order_value: float = 0.0
    max_discount_amount: float | None = None
    created_by: int | None = None
    auto_applied: bool = False
    auto_removed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, discount: Discount, now: datetime | None = None) -> "DiscountRead":
        return cls(
            id=discount.id or 0,
            name=discount.name,
            description=discount.description,
            kind=discount.kind,
            value=discount.value,
            applicable_to=discount.applicable_to,
            category=discount.category,
            product_ids=list(discount.product_ids),
            start_at=discount.start_at,
            end_at=discount.end_at,
            active=discount.active,
            status=discount.status(now),
            usage_limit=discount.usage_limit,
            used_count=discount.used_count,
            remaining_usage=discount.remaining_usage,
            min_order_value=discount.min_order_value,
            max_discount_amount=discount.max_discount_amount,
            created_by=discount.created_by,
            auto_applied=discount.auto_applied,
            auto_removed=discount.auto_removed,
            created_at=discount.created_at,
            updated_at=discount.updated_at,
        )


class DiscountList(CamelModel):
    discounts: list[DiscountRead]
    total: int
    current_page: int
    total_pages: int


class AppliedDiscountRead(CamelModel):
    discount_id: int
    name: str
    kind: DiscountKind = Field(alias="type")
    value: float
    max_discount_amount: float | None = None
    applied_by: str
    applied_at: datetime | None = None

    @classmethod
    def from_entity(cls, entry: AppliedDiscount) -> "AppliedDiscountRead":
        return cls(
            discount_id=entry.discount_id,
            name=entry.name,
            kind=entry.kind,
            value=entry.value,
            max_discount_amount=entry.max_discount_amount,
            applied_by=entry.applied_by,
            applied_at=entry.applied_at,
        )


class ProductPriceRead(CamelModel):
    id: int
    name: str
    category: str
    regular_price: float
    effective_price: float
    best_discount_id: int | None = None
    applied_discounts: list[AppliedDiscountRead] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, product: Product) -> "ProductPriceRead":
        return cls(
            id=product.id or 0,
            name=product.name,
            category=product.category,
            regular_price=product.regular_price,
            effective_price=product.current_price,
            best_discount_id=product.best_discount_id,
            applied_discounts=[
                AppliedDiscountRead.from_entity(entry) for entry in product.applied_discounts
            ],
        )


class UpcomingDiscountRead(CamelModel):
    discount: DiscountRead
    product_count: int
    products: list[ProductPriceRead]


class AvailableDiscountList(CamelModel):
    discounts: list[DiscountRead]


class CategoryApplyRequest(CamelModel):
    category: str


class CategoryApplyResultRead(CamelModel):
    applied: int
    skipped: int
    total: int


class ProductDiscountRequest(CamelModel):
    discount_id: int


class TickResultRead(CamelModel):
    applied_products: int
    removed_products: int
    applied_discounts: list[int]
    removed_discounts: list[int]
    failures: list[int]
    skipped: bool


__all__ = [
    "AppliedDiscountRead",
    "AvailableDiscountList",
    "CategoryApplyRequest",
    "CategoryApplyResultRead",
    "DiscountCreate",
    "DiscountList",
    "DiscountRead",
    "DiscountUpdate",
    "ProductDiscountRequest",
    "ProductPriceRead",
    "TickResultRead",
    "UpcomingDiscountRead",
]
