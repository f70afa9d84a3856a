"""Pure rules for discount status and discount-adjusted prices.

Both the lifecycle scheduler and every price display path go through these
functions so the definition of "active right now" and of the effective price
exists in exactly one place.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from urbansprout.domain.entities.discount import DiscountKind, DiscountStatus
from urbansprout.domain.entities.product import AppliedDiscount
from urbansprout.utils import ensure_utc

_CENT = Decimal("0.01")


def discount_status(
    now: datetime, start_at: datetime, end_at: datetime, active: bool
) -> DiscountStatus:
    """Return the status of a discount window at ``now``.

    Both window bounds are inclusive: a discount is ``active`` from the instant
    it starts until the instant it ends.
    """

    if not active:
        return DiscountStatus.INACTIVE

    current = ensure_utc(now)
    if current < ensure_utc(start_at):
        return DiscountStatus.SCHEDULED
    if current > ensure_utc(end_at):
        return DiscountStatus.EXPIRED
    return DiscountStatus.ACTIVE


def round_price(value: float) -> float:
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def discount_amount(
    regular_price: float,
    kind: DiscountKind,
    value: float,
    max_discount_amount: float | None = None,
) -> float:
    """Return how much ``regular_price`` is reduced by a single discount."""

    if kind is DiscountKind.PERCENTAGE:
        amount = regular_price * value / 100
    else:
        amount = value

    if max_discount_amount is not None and amount > max_discount_amount:
        amount = max_discount_amount
    return max(0.0, min(amount, regular_price))


def discounted_price(
    regular_price: float,
    kind: DiscountKind,
    value: float,
    max_discount_amount: float | None = None,
) -> float:
    """Return the price after one discount, floored at zero."""

    amount = discount_amount(regular_price, kind, value, max_discount_amount)
    return round_price(max(0.0, regular_price - amount))


def select_best_discount(
    regular_price: float, entries: Iterable[AppliedDiscount]
) -> tuple[float, AppliedDiscount | None]:
    """Return the effective price and the entry that produces it.

    Every entry is evaluated independently against the regular price and the
    lowest resulting price wins. On ties the most recently applied entry wins.
    """

    ordered = sorted(
        entries,
        key=lambda entry: (
            ensure_utc(entry.applied_at).timestamp() if entry.applied_at else 0.0
        ),
    )

    best: AppliedDiscount | None = None
    best_price = round_price(regular_price)
    for entry in ordered:
        price = discounted_price(
            regular_price, entry.kind, entry.value, entry.max_discount_amount
        )
        if best is None or price <= best_price:
            best = entry
            best_price = price
    return best_price, best


__all__ = [
    "discount_amount",
    "discount_status",
    "discounted_price",
    "round_price",
    "select_best_discount",
]
