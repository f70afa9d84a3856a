"""Repository implementations for infrastructure layer."""

from .admin_activity_repository import AdminActivityRepository
from .discount_repository import DiscountRepository
from .notification_store import NotificationStore
from .product_repository import ProductRepository
from .user_repository import UserRepository

__all__ = [
    "AdminActivityRepository",
    "DiscountRepository",
    "NotificationStore",
    "ProductRepository",
    "UserRepository",
]
