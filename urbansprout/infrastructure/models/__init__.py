"""ORM models used by the application infrastructure."""

from .admin_activity import AdminActivityModel
from .discount import DiscountModel, DiscountProductModel
from .notification import NotificationModel
from .product import AppliedDiscountModel, ProductModel
from .user import UserModel

__all__ = [
    "AdminActivityModel",
    "AppliedDiscountModel",
    "DiscountModel",
    "DiscountProductModel",
    "NotificationModel",
    "ProductModel",
    "UserModel",
]
