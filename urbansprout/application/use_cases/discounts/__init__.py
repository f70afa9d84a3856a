"""Use cases for managing discounts and their effects on products."""

from .applicator import CategoryApplyResult, DiscountApplicator, affected_product_ids
from .create_discount import create_discount
from .delete_discount import delete_discount
from .get_discount import get_discount
from .list_available_discounts import list_available_discounts_for_product
from .list_discounts import list_discounts
from .list_upcoming_discounts import UpcomingDiscount, list_upcoming_discounts
from .update_discount import update_discount

__all__ = [
    "CategoryApplyResult",
    "DiscountApplicator",
    "UpcomingDiscount",
    "affected_product_ids",
    "create_discount",
    "delete_discount",
    "get_discount",
    "list_available_discounts_for_product",
    "list_discounts",
    "list_upcoming_discounts",
    "update_discount",
]
