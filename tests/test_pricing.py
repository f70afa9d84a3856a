"""Tests for the pure discount status and price rules."""

from datetime import datetime, timedelta, timezone

import pytest

from urbansprout.domain.entities import (
    AppliedDiscount,
    ApplicableTo,
    Discount,
    DiscountKind,
    DiscountStatus,
)
from urbansprout.domain.pricing import (
    discount_status,
    discounted_price,
    select_best_discount,
)

T0 = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=2)


@pytest.mark.parametrize(
    ("now", "active", "expected"),
    [
        (T0 - timedelta(seconds=1), True, DiscountStatus.SCHEDULED),
        (T0, True, DiscountStatus.ACTIVE),
        (T0 + timedelta(hours=1), True, DiscountStatus.ACTIVE),
        (T1, True, DiscountStatus.ACTIVE),
        (T1 + timedelta(seconds=1), True, DiscountStatus.EXPIRED),
        (T0 + timedelta(hours=1), False, DiscountStatus.INACTIVE),
    ],
)
def test_discount_status_depends_only_on_window(now, active, expected):
    assert discount_status(now, T0, T1, active) is expected


def test_discount_status_treats_naive_values_as_utc():
    naive_now = (T0 + timedelta(minutes=5)).replace(tzinfo=None)
    assert discount_status(naive_now, T0, T1, True) is DiscountStatus.ACTIVE


def test_entity_status_ignores_persisted_bookkeeping():
    discount = Discount(
        id=1,
        name="Expired",
        kind=DiscountKind.PERCENTAGE,
        value=10,
        applicable_to=ApplicableTo.ALL,
        start_at=T0,
        end_at=T1,
        auto_applied=True,
        auto_removed=False,
    )
    assert discount.status(T1 + timedelta(days=1)) is DiscountStatus.EXPIRED


def test_discounted_price_percentage_and_fixed():
    assert discounted_price(500, DiscountKind.PERCENTAGE, 10) == 450.0
    assert discounted_price(500, DiscountKind.FIXED, 50) == 450.0
    assert discounted_price(40, DiscountKind.FIXED, 50) == 0.0


def test_discounted_price_honours_maximum_amount():
    assert discounted_price(1000, DiscountKind.PERCENTAGE, 50, 100) == 900.0


def test_discounted_price_rounds_half_up():
    assert discounted_price(0.05, DiscountKind.PERCENTAGE, 50) == 0.03


def _entry(discount_id, kind, value, minutes):
    return AppliedDiscount(
        discount_id=discount_id,
        name=f"d{discount_id}",
        kind=kind,
        value=value,
        applied_at=T0 + timedelta(minutes=minutes),
    )


def test_best_single_discount_wins():
    entries = [
        _entry(1, DiscountKind.PERCENTAGE, 10, 0),
        _entry(2, DiscountKind.FIXED, 5, 1),
    ]
    price, best = select_best_discount(20, entries)
    assert price == 15.0
    assert best.discount_id == 2


def test_ties_go_to_most_recent_entry():
    entries = [
        _entry(2, DiscountKind.FIXED, 50, 5),
        _entry(1, DiscountKind.PERCENTAGE, 10, 0),
    ]
    price, best = select_best_discount(500, entries)
    assert price == 450.0
    assert best.discount_id == 2


def test_no_entries_keeps_regular_price():
    assert select_best_discount(19.99, []) == (19.99, None)
