"""Domain entities exposed by the application."""

from .admin_activity import AdminActivity
from .discount import ApplicableTo, Discount, DiscountKind, DiscountStatus
from .notification import (
    RELATED_MODELS,
    Notification,
    NotificationKind,
    NotificationPage,
)
from .product import (
    APPLIED_BY_AUTOMATIC,
    APPLIED_BY_CATEGORY,
    APPLIED_BY_MANUAL,
    AppliedDiscount,
    Product,
    ProductChange,
)
from .user import ROLE_ADMIN, ROLE_USER, User

__all__ = [
    "AdminActivity",
    "ApplicableTo",
    "Discount",
    "DiscountKind",
    "DiscountStatus",
    "RELATED_MODELS",
    "Notification",
    "NotificationKind",
    "NotificationPage",
    "APPLIED_BY_AUTOMATIC",
    "APPLIED_BY_CATEGORY",
    "APPLIED_BY_MANUAL",
    "AppliedDiscount",
    "Product",
    "ProductChange",
    "ROLE_ADMIN",
    "ROLE_USER",
    "User",
]
