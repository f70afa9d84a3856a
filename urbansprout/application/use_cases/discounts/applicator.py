"""Materialize discounts on products with per-product compare-and-set."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from urbansprout.domain.entities import (
    APPLIED_BY_AUTOMATIC,
    APPLIED_BY_CATEGORY,
    APPLIED_BY_MANUAL,
    ApplicableTo,
    AppliedDiscount,
    Discount,
    DiscountStatus,
    Product,
    ProductChange,
)
from urbansprout.domain.errors import ConflictError, NotFoundError, ValidationError
from urbansprout.infrastructure.database import SessionFactory, session_scope
from urbansprout.infrastructure.repositories import DiscountRepository, ProductRepository
from urbansprout.utils import now_utc

logger = logging.getLogger(__name__)

ChangeBuilder = Callable[[Product], ProductChange | None]


@dataclass
class CategoryApplyResult:
    applied: int
    skipped: int
    total: int


class DiscountApplicator:
    """Attach and detach discounts and keep effective prices in sync.

    All writes to a product's applied discounts go through
    :meth:`_update_product`, which re-reads the product on every attempt and
    only commits if its version did not move in between.
    """

    def __init__(self, session_factory: SessionFactory, *, max_retries: int = 5) -> None:
        self._session_factory = session_factory
        self._max_retries = max(1, max_retries)

    def resolve_affected_products(self, discount: Discount) -> set[int]:
        with session_scope(self._session_factory) as session:
            return affected_product_ids(ProductRepository(session), discount)

    def apply(
        self,
        discount_id: int,
        *,
        applied_by: str = APPLIED_BY_AUTOMATIC,
        now: datetime | None = None,
    ) -> int:
        """Attach the discount to every product it targets.

        Products that already carry the discount are left untouched. Returns
        the number of products whose entries changed.
        """

        moment = now or now_utc()
        discount = self._load_discount(discount_id)
        status = discount.status(moment)
        if status is not DiscountStatus.ACTIVE:
            logger.debug("Discount %s is %s, nothing to apply", discount_id, status.value)
            return 0

        entry = _entry_for(discount, applied_by, moment)
        changed = 0
        for product_id in sorted(self.resolve_affected_products(discount)):
            updated = self._update_product(product_id, _adding(entry))
            if updated is not None:
                changed += 1

        self._set_flags(discount_id, auto_applied=True, auto_removed=False)
        logger.info("Applied discount %s to %s products", discount_id, changed)
        return changed

    def revoke(self, discount_id: int) -> int:
        """Detach the discount from every product that still holds it."""

        with session_scope(self._session_factory) as session:
            product_ids = ProductRepository(session).list_ids_with_discount(discount_id)

        changed = 0
        for product_id in sorted(product_ids):
            updated = self._update_product(product_id, _removing(discount_id))
            if updated is not None:
                changed += 1

        self._set_flags(discount_id, auto_removed=True)
        logger.info("Removed discount %s from %s products", discount_id, changed)
        return changed

    def apply_to_category(self, discount_id: int, category: str) -> CategoryApplyResult:
        moment = now_utc()
        discount = self._load_discount(discount_id)
        if discount.applicable_to is not ApplicableTo.CATEGORY:
            raise ValidationError("This discount is not a category discount")
        if not category or discount.category != category:
            raise ValidationError("Category does not match the discount's category")
        if discount.status(moment) is not DiscountStatus.ACTIVE:
            raise ValidationError("Discount is not currently active")

        with session_scope(self._session_factory) as session:
            product_ids = ProductRepository(session).list_sellable_ids(category=category)

        entry = _entry_for(discount, APPLIED_BY_CATEGORY, moment)
        applied = 0
        for product_id in sorted(product_ids):
            if self._update_product(product_id, _adding(entry)) is not None:
                applied += 1

        self._set_flags(discount_id, auto_applied=True, auto_removed=False)
        return CategoryApplyResult(
            applied=applied, skipped=len(product_ids) - applied, total=len(product_ids)
        )

    def apply_to_product(
        self,
        product_id: int,
        discount_id: int,
        *,
        applied_by: str = APPLIED_BY_MANUAL,
    ) -> Product:
        moment = now_utc()
        discount = self._load_discount(discount_id)
        product = self._load_product(product_id)
        if discount.status(moment) is not DiscountStatus.ACTIVE:
            raise ValidationError("Discount is not currently active")
        if not discount.targets(product.id, product.category):
            raise ValidationError("Discount is not applicable to this product")

        entry = _entry_for(discount, applied_by, moment)

        def build(current: Product) -> ProductChange:
            if current.has_discount(discount_id):
                raise ValidationError("Discount is already applied to this product")
            return ProductChange(add=[entry])

        updated = self._update_product(product_id, build)
        if updated is None:
            raise NotFoundError("Product not found")
        return updated

    def remove_from_product(self, product_id: int, discount_id: int) -> Product:
        self._load_product(product_id)

        def build(current: Product) -> ProductChange:
            if not current.has_discount(discount_id):
                raise NotFoundError("Discount is not applied to this product")
            return ProductChange(remove_discount_ids={discount_id})

        updated = self._update_product(product_id, build)
        if updated is None:
            raise NotFoundError("Product not found")
        return updated

    def _update_product(self, product_id: int, build: ChangeBuilder) -> Product | None:
        """Read, change and compare-and-set one product until it sticks.

        Returns ``None`` when the product no longer exists or ``build`` has
        nothing to change.
        """

        for attempt in range(1, self._max_retries + 1):
            with session_scope(self._session_factory) as session:
                repository = ProductRepository(session)
                product = repository.get(product_id)
                if product is None:
                    return None
                change = build(product)
                if change is None or change.is_empty():
                    return None
                updated = repository.compare_and_set(product, change)
            if updated is not None:
                return updated
            logger.debug(
                "Product %s changed concurrently, retrying (attempt %s of %s)",
                product_id,
                attempt,
                self._max_retries,
            )

        logger.error(
            "Giving up on product %s after %s attempts", product_id, self._max_retries
        )
        raise ConflictError(
            f"Product {product_id} is being updated concurrently, try again later"
        )

    def _load_discount(self, discount_id: int) -> Discount:
        with session_scope(self._session_factory) as session:
            discount = DiscountRepository(session).get(discount_id)
        if discount is None:
            raise NotFoundError("Discount not found")
        return discount

    def _load_product(self, product_id: int) -> Product:
        with session_scope(self._session_factory) as session:
            product = ProductRepository(session).get(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def _set_flags(self, discount_id: int, **flags: bool) -> None:
        with session_scope(self._session_factory) as session:
            DiscountRepository(session).set_lifecycle_flags(discount_id, **flags)


def affected_product_ids(repository: ProductRepository, discount: Discount) -> set[int]:
    """Return the products targeted by the applicability rule of ``discount``."""

    if discount.applicable_to is ApplicableTo.ALL:
        return repository.list_sellable_ids()
    if discount.applicable_to is ApplicableTo.CATEGORY:
        if not discount.category:
            return set()
        return repository.list_sellable_ids(category=discount.category)
    return repository.filter_existing_ids(discount.product_ids)


def _entry_for(discount: Discount, applied_by: str, applied_at: datetime) -> AppliedDiscount:
    return AppliedDiscount(
        discount_id=discount.id,
        name=discount.name,
        kind=discount.kind,
        value=discount.value,
        max_discount_amount=discount.max_discount_amount,
        applied_by=applied_by,
        applied_at=applied_at,
    )


def _adding(entry: AppliedDiscount) -> ChangeBuilder:
    def build(product: Product) -> ProductChange | None:
        if product.has_discount(entry.discount_id):
            return None
        return ProductChange(add=[entry])

    return build


def _removing(discount_id: int) -> ChangeBuilder:
    def build(product: Product) -> ProductChange | None:
        if not product.has_discount(discount_id):
            return None
        return ProductChange(remove_discount_ids={discount_id})

    return build


__all__ = ["CategoryApplyResult", "DiscountApplicator", "affected_product_ids"]
