"""Tests for materializing discounts on products."""

from datetime import timedelta

import pytest

from urbansprout.application.use_cases.discounts import DiscountApplicator
from urbansprout.domain.entities import ApplicableTo, DiscountKind
from urbansprout.domain.errors import ConflictError, NotFoundError, ValidationError
from urbansprout.infrastructure.repositories import ProductRepository
from urbansprout.utils import now_utc


@pytest.fixture
def applicator(session_factory):
    return DiscountApplicator(session_factory, max_retries=3)


def test_apply_is_idempotent(applicator, make_product, make_discount, load_product, load_discount):
    first = make_product("Trowel", price=20)
    second = make_product("Pruner", price=50)
    archived = make_product("Old rake", price=30, archived=True)
    draft = make_product("Hoe", price=40, published=False)
    discount = make_discount(value=10)

    assert applicator.apply(discount.id) == 2
    price_after_first = load_product(first.id).effective_price
    assert applicator.apply(discount.id) == 0

    trowel = load_product(first.id)
    assert [entry.discount_id for entry in trowel.applied_discounts] == [discount.id]
    assert trowel.effective_price == price_after_first == 18.0
    assert load_product(second.id).effective_price == 45.0
    assert load_product(archived.id).applied_discounts == []
    assert load_product(draft.id).applied_discounts == []

    stored = load_discount(discount.id)
    assert stored.auto_applied is True
    assert stored.auto_removed is False


def test_apply_skips_discounts_outside_their_window(applicator, make_product, make_discount, load_product):
    product = make_product()
    now = now_utc()
    scheduled = make_discount(start_at=now + timedelta(hours=1), end_at=now + timedelta(hours=2))
    inactive = make_discount(active=False)

    assert applicator.apply(scheduled.id) == 0
    assert applicator.apply(inactive.id) == 0
    assert load_product(product.id).applied_discounts == []


def test_revoke_restores_best_remaining_price(
    applicator, make_product, make_discount, load_product, load_discount
):
    product = make_product(price=20)
    percentage = make_discount(name="Ten off", value=10)
    fixed = make_discount(name="Five off", kind=DiscountKind.FIXED, value=5)

    applicator.apply(percentage.id)
    applicator.apply(fixed.id)
    both = load_product(product.id)
    assert both.effective_price == 15.0
    assert both.best_discount_id == fixed.id

    assert applicator.revoke(fixed.id) == 1
    remaining = load_product(product.id)
    assert [entry.discount_id for entry in remaining.applied_discounts] == [percentage.id]
    assert remaining.effective_price == 18.0
    assert remaining.best_discount_id == percentage.id
    assert load_discount(fixed.id).auto_removed is True

    applicator.revoke(percentage.id)
    bare = load_product(product.id)
    assert bare.applied_discounts == []
    assert bare.effective_price == 20.0
    assert bare.best_discount_id is None


def test_maximum_discount_amount_caps_reduction(applicator, make_product, make_discount, load_product):
    product = make_product(price=1000)
    discount = make_discount(value=50, max_discount_amount=100)

    applicator.apply(discount.id)

    assert load_product(product.id).effective_price == 900.0


def test_products_discount_only_targets_listed_products(
    applicator, make_product, make_discount, load_product
):
    listed = make_product("Watering can", price=500)
    other = make_product("Gloves", price=500)
    discount = make_discount(
        kind=DiscountKind.FIXED,
        value=50,
        applicable_to=ApplicableTo.PRODUCTS,
        product_ids=[listed.id, 9999],
    )

    assert applicator.resolve_affected_products(discount) == {listed.id}
    assert applicator.apply(discount.id) == 1
    assert load_product(listed.id).effective_price == 450.0
    assert load_product(other.id).applied_discounts == []


def test_apply_to_category(applicator, make_product, make_discount, load_product):
    tools = [make_product(f"Tool {index}", category="Tools", price=10) for index in range(3)]
    seeds = make_product("Basil seeds", category="Seeds", price=10)
    discount = make_discount(applicable_to=ApplicableTo.CATEGORY, category="Tools", value=20)
    applicator.apply_to_product(tools[0].id, discount.id)

    result = applicator.apply_to_category(discount.id, "Tools")

    assert (result.applied, result.skipped, result.total) == (2, 1, 3)
    for product in tools:
        entry = load_product(product.id).applied_discounts
        assert len(entry) == 1
    assert load_product(seeds.id).applied_discounts == []

    with pytest.raises(ValidationError):
        applicator.apply_to_category(discount.id, "Seeds")


def test_apply_to_category_requires_category_discount(applicator, make_discount):
    discount = make_discount()
    with pytest.raises(ValidationError):
        applicator.apply_to_category(discount.id, "Tools")


def test_manual_apply_and_remove(applicator, make_product, make_discount, load_product):
    product = make_product(category="Tools", price=80)
    seeds_only = make_discount(applicable_to=ApplicableTo.CATEGORY, category="Seeds")
    discount = make_discount(kind=DiscountKind.FIXED, value=30)

    with pytest.raises(ValidationError):
        applicator.apply_to_product(product.id, seeds_only.id)
    with pytest.raises(NotFoundError):
        applicator.apply_to_product(product.id + 100, discount.id)

    updated = applicator.apply_to_product(product.id, discount.id)
    assert updated.effective_price == 50.0
    assert updated.applied_discounts[0].applied_by == "manual"

    with pytest.raises(ValidationError):
        applicator.apply_to_product(product.id, discount.id)

    restored = applicator.remove_from_product(product.id, discount.id)
    assert restored.effective_price == 80.0
    with pytest.raises(NotFoundError):
        applicator.remove_from_product(product.id, discount.id)
    assert load_product(product.id).version == 2


def test_concurrent_writer_does_not_cause_lost_update(
    applicator, make_product, make_discount, load_product, monkeypatch
):
    product = make_product(price=500)
    site_wide = make_discount(name="Site wide", value=10)
    targeted = make_discount(
        name="Can promo",
        kind=DiscountKind.FIXED,
        value=50,
        applicable_to=ApplicableTo.PRODUCTS,
        product_ids=[product.id],
    )
    original_get = ProductRepository.get
    calls = {"count": 0}

    def racing_get(self, product_id):
        current = original_get(self, product_id)
        calls["count"] += 1
        if calls["count"] == 1:
            # Another writer commits between our read and our write.
            applicator.apply_to_product(product_id, targeted.id)
        return current

    monkeypatch.setattr(ProductRepository, "get", racing_get)

    assert applicator.apply(site_wide.id) == 1

    final = load_product(product.id)
    assert sorted(entry.discount_id for entry in final.applied_discounts) == sorted(
        [site_wide.id, targeted.id]
    )
    assert final.effective_price == 450.0


def test_retries_are_bounded(applicator, make_product, make_discount, monkeypatch):
    make_product()
    discount = make_discount()
    monkeypatch.setattr(ProductRepository, "compare_and_set", lambda self, product, change: None)

    with pytest.raises(ConflictError):
        applicator.apply(discount.id)
