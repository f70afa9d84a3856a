"""Persistence helpers for products and their applied discounts."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from urbansprout.domain.entities import (
    AppliedDiscount,
    DiscountKind,
    Product,
    ProductChange,
)
from urbansprout.domain.pricing import round_price, select_best_discount
from urbansprout.infrastructure.models import AppliedDiscountModel, ProductModel
from urbansprout.utils import ensure_naive_utc, ensure_utc

logger = logging.getLogger(__name__)


class ProductRepository:
    """Read products and materialize their applied discounts atomically."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, product_id: int) -> Product | None:
        model = (
            self.session.query(ProductModel)
            .filter(ProductModel.id == product_id)
            .populate_existing()
            .first()
        )
        return self._to_entity(model) if model else None

    def get_many(self, product_ids: Iterable[int], *, limit: int | None = None) -> list[Product]:
        ids = sorted({int(product_id) for product_id in product_ids})
        if not ids:
            return []
        query = (
            self.session.query(ProductModel)
            .filter(ProductModel.id.in_(ids))
            .order_by(ProductModel.id)
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def create(self, product: Product) -> Product:
        model = ProductModel(
            name=product.name,
            category=product.category,
            regular_price=product.regular_price,
            published=product.published,
            archived=product.archived,
            effective_price=round_price(product.regular_price),
            best_discount_id=None,
            version=0,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_sellable_ids(self, *, category: str | None = None) -> set[int]:
        """Return ids of published, non archived products."""

        query = self.session.query(ProductModel.id).filter(
            ProductModel.published.is_(True), ProductModel.archived.is_(False)
        )
        if category is not None:
            query = query.filter(ProductModel.category == category)
        return {product_id for (product_id,) in query.all()}

    def filter_existing_ids(self, product_ids: Sequence[int]) -> set[int]:
        if not product_ids:
            return set()
        query = self.session.query(ProductModel.id).filter(
            ProductModel.id.in_({int(product_id) for product_id in product_ids})
        )
        return {product_id for (product_id,) in query.all()}

    def list_ids_with_discount(self, discount_id: int) -> set[int]:
        query = self.session.query(AppliedDiscountModel.product_id).filter(
            AppliedDiscountModel.discount_id == discount_id
        )
        return {product_id for (product_id,) in query.distinct().all()}

    def compare_and_set(self, product: Product, change: ProductChange) -> Product | None:
        """Persist ``change`` only if nobody updated ``product`` since it was read.

        The version bump and the entry inserts/deletes share one transaction.
        Returns the updated product, or ``None`` when another writer got there
        first; the caller is expected to re-read and try again.
        """

        remaining = [
            entry
            for entry in product.applied_discounts
            if entry.discount_id not in change.remove_discount_ids
        ]
        present = {entry.discount_id for entry in remaining}
        added = [entry for entry in change.add if entry.discount_id not in present]
        entries = remaining + added
        effective_price, best = select_best_discount(product.regular_price, entries)

        result = self.session.execute(
            update(ProductModel)
            .where(ProductModel.id == product.id, ProductModel.version == product.version)
            .values(
                effective_price=effective_price,
                best_discount_id=best.discount_id if best else None,
                version=product.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.session.rollback()
            return None

        if change.remove_discount_ids:
            self.session.query(AppliedDiscountModel).filter(
                AppliedDiscountModel.product_id == product.id,
                AppliedDiscountModel.discount_id.in_(change.remove_discount_ids),
            ).delete(synchronize_session=False)
        for entry in added:
            self.session.add(self._entry_to_model(product.id, entry))

        try:
            self.session.commit()
        except IntegrityError:
            # Another transaction attached the same discount concurrently.
            self.session.rollback()
            logger.debug("Duplicate applied discount on product %s", product.id)
            return None

        self.session.expire_all()
        return self.get(product.id)

    @staticmethod
    def _entry_to_model(product_id: int, entry: AppliedDiscount) -> AppliedDiscountModel:
        return AppliedDiscountModel(
            product_id=product_id,
            discount_id=entry.discount_id,
            name=entry.name,
            kind=entry.kind.value,
            value=entry.value,
            max_discount_amount=entry.max_discount_amount,
            applied_by=entry.applied_by,
            applied_at=ensure_naive_utc(entry.applied_at),
        )

    @staticmethod
    def _to_entity(model: ProductModel) -> Product:
        return Product(
            id=model.id,
            name=model.name,
            category=model.category,
            regular_price=model.regular_price,
            published=model.published,
            archived=model.archived,
            effective_price=model.effective_price,
            best_discount_id=model.best_discount_id,
            version=model.version,
            applied_discounts=[
                AppliedDiscount(
                    discount_id=entry.discount_id,
                    name=entry.name,
                    kind=DiscountKind(entry.kind),
                    value=entry.value,
                    max_discount_amount=entry.max_discount_amount,
                    applied_by=entry.applied_by,
                    applied_at=ensure_utc(entry.applied_at),
                )
                for entry in model.applied_discounts
            ],
        )


__all__ = ["ProductRepository"]
