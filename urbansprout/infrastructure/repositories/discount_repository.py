"""Persistence helpers for discount entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import Query, Session

from urbansprout.domain.entities import (
    ApplicableTo,
    Discount,
    DiscountKind,
    DiscountStatus,
)
from urbansprout.infrastructure.models import (
    AppliedDiscountModel,
    DiscountModel,
    DiscountProductModel,
)
from urbansprout.utils import ensure_naive_utc, ensure_utc


class DiscountRepository:
    """Provide CRUD and lifecycle queries for :class:`Discount` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, discount_id: int) -> Discount | None:
        model = self.session.get(DiscountModel, discount_id)
        return self._to_entity(model) if model else None

    def list(
        self,
        *,
        now: datetime,
        status: DiscountStatus | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Discount], int]:
        query = self.session.query(DiscountModel)
        if status is not None:
            query = self._filter_status(query, status, ensure_naive_utc(now))
        if search:
            query = query.filter(DiscountModel.name.ilike(f"%{search}%"))
        total = query.count()
        models = (
            query.order_by(DiscountModel.created_at.desc(), DiscountModel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return [self._to_entity(model) for model in models], total

    def create(self, discount: Discount) -> Discount:
        model = DiscountModel()
        self._apply_entity_to_model(model, discount)
        model.created_by = discount.created_by
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, discount: Discount) -> Discount:
        if discount.id is None:
            raise ValueError("Discount id is required for updates")
        model = self.session.get(DiscountModel, discount.id)
        if model is None:
            msg = f"Discount with id {discount.id} not found"
            raise ValueError(msg)
        self._apply_entity_to_model(model, discount)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, discount_id: int) -> None:
        model = self.session.get(DiscountModel, discount_id)
        if model is None:
            return
        self.session.delete(model)
        self.session.commit()

    def set_lifecycle_flags(
        self,
        discount_id: int,
        *,
        auto_applied: bool | None = None,
        auto_removed: bool | None = None,
    ) -> None:
        values = {}
        if auto_applied is not None:
            values[DiscountModel.auto_applied] = auto_applied
        if auto_removed is not None:
            values[DiscountModel.auto_removed] = auto_removed
        if not values:
            return
        self.session.query(DiscountModel).filter(DiscountModel.id == discount_id).update(
            values, synchronize_session=False
        )
        self.session.commit()

    def list_due_for_apply(self, now: datetime) -> list[Discount]:
        """Active discounts inside their window whose effects are not materialized."""

        moment = ensure_naive_utc(now)
        query = (
            self.session.query(DiscountModel)
            .filter(DiscountModel.active.is_(True))
            .filter(DiscountModel.auto_applied.is_(False))
            .filter(DiscountModel.start_at <= moment)
            .filter(DiscountModel.end_at >= moment)
            .order_by(DiscountModel.start_at, DiscountModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def list_due_for_revoke(self, now: datetime) -> list[Discount]:
        """Expired or deactivated discounts that still have effects on products."""

        moment = ensure_naive_utc(now)
        has_entries = exists().where(AppliedDiscountModel.discount_id == DiscountModel.id)
        query = (
            self.session.query(DiscountModel)
            .filter(DiscountModel.auto_removed.is_(False))
            .filter(or_(DiscountModel.end_at < moment, DiscountModel.active.is_(False)))
            .filter(or_(DiscountModel.auto_applied.is_(True), has_entries))
            .order_by(DiscountModel.end_at, DiscountModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def list_upcoming(
        self, *, now: datetime, since: datetime, category: str | None = None, limit: int = 50
    ) -> list[Discount]:
        query = (
            self.session.query(DiscountModel)
            .filter(DiscountModel.active.is_(True))
            .filter(DiscountModel.start_at >= ensure_naive_utc(since))
            .filter(DiscountModel.end_at > ensure_naive_utc(now))
            .filter(DiscountModel.auto_removed.is_(False))
        )
        if category is not None:
            query = query.filter(
                or_(
                    DiscountModel.applicable_to != ApplicableTo.CATEGORY.value,
                    DiscountModel.category == category,
                )
            )
        query = query.order_by(DiscountModel.start_at, DiscountModel.id).limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_active_for_product(
        self, *, now: datetime, product_id: int, category: str
    ) -> list[Discount]:
        moment = ensure_naive_utc(now)
        targets_product = exists().where(
            and_(
                DiscountProductModel.discount_id == DiscountModel.id,
                DiscountProductModel.product_id == product_id,
            )
        )
        query = (
            self.session.query(DiscountModel)
            .filter(DiscountModel.active.is_(True))
            .filter(DiscountModel.start_at <= moment)
            .filter(DiscountModel.end_at >= moment)
            .filter(
                or_(
                    DiscountModel.applicable_to == ApplicableTo.ALL.value,
                    and_(
                        DiscountModel.applicable_to == ApplicableTo.CATEGORY.value,
                        DiscountModel.category == category,
                    ),
                    and_(
                        DiscountModel.applicable_to == ApplicableTo.PRODUCTS.value,
                        targets_product,
                    ),
                )
            )
            .order_by(DiscountModel.created_at.desc(), DiscountModel.id.desc())
        )
        return [self._to_entity(model) for model in query.all()]

    @staticmethod
    def _filter_status(query: Query, status: DiscountStatus, moment: datetime) -> Query:
        if status is DiscountStatus.INACTIVE:
            return query.filter(DiscountModel.active.is_(False))
        query = query.filter(DiscountModel.active.is_(True))
        if status is DiscountStatus.SCHEDULED:
            return query.filter(DiscountModel.start_at > moment)
        if status is DiscountStatus.EXPIRED:
            return query.filter(DiscountModel.end_at < moment)
        return query.filter(
            DiscountModel.start_at <= moment, DiscountModel.end_at >= moment
        )

    @staticmethod
    def _apply_entity_to_model(model: DiscountModel, discount: Discount) -> None:
        model.name = discount.name
        model.description = discount.description
        model.kind = discount.kind.value
        model.value = discount.value
        model.applicable_to = discount.applicable_to.value
        model.category = (
            discount.category if discount.applicable_to is ApplicableTo.CATEGORY else None
        )
        model.start_at = ensure_naive_utc(discount.start_at)
        model.end_at = ensure_naive_utc(discount.end_at)
        model.active = discount.active
        model.usage_limit = discount.usage_limit
        model.used_count = discount.used_count
        model.min_order_value = discount.min_order_value
        model.max_discount_amount = discount.max_discount_amount
        model.auto_applied = discount.auto_applied
        model.auto_removed = discount.auto_removed

        product_ids: Sequence[int] = (
            discount.product_ids if discount.applicable_to is ApplicableTo.PRODUCTS else []
        )
        wanted = {int(product_id) for product_id in product_ids}
        current = {link.product_id for link in model.product_links}
        if wanted != current:
            model.product_links = [
                link for link in model.product_links if link.product_id in wanted
            ] + [
                DiscountProductModel(product_id=product_id)
                for product_id in sorted(wanted - current)
            ]

    @staticmethod
    def _to_entity(model: DiscountModel) -> Discount:
        return Discount(
            id=model.id,
            name=model.name,
            kind=DiscountKind(model.kind),
            value=model.value,
            applicable_to=ApplicableTo(model.applicable_to),
            start_at=ensure_utc(model.start_at),
            end_at=ensure_utc(model.end_at),
            category=model.category,
            product_ids=[link.product_id for link in model.product_links],
            active=model.active,
            usage_limit=model.usage_limit,
            used_count=model.used_count,
            min_order_value=model.min_order_value,
            max_discount_amount=model.max_discount_amount,
            description=model.description,
            created_by=model.created_by,
            auto_applied=model.auto_applied,
            auto_removed=model.auto_removed,
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


__all__ = ["DiscountRepository"]
