from .admin import AdminActivityRead, RealtimeStatusRead, SchedulerStatusRead
from .base import CamelModel, Envelope, MessageResponse
from .discount import (
    AppliedDiscountRead,
    AvailableDiscountList,
    CategoryApplyRequest,
    CategoryApplyResultRead,
    DiscountCreate,
    DiscountList,
    DiscountRead,
    DiscountUpdate,
    ProductDiscountRequest,
    ProductPriceRead,
    TickResultRead,
    UpcomingDiscountRead,
)
from .notification import (
    DeletedCount,
    NotificationList,
    NotificationRead,
    UnreadCount,
    UpdatedCount,
)

__all__ = [
    "AdminActivityRead",
    "AppliedDiscountRead",
    "AvailableDiscountList",
    "CamelModel",
    "CategoryApplyRequest",
    "CategoryApplyResultRead",
    "DeletedCount",
    "DiscountCreate",
    "DiscountList",
    "DiscountRead",
    "DiscountUpdate",
    "Envelope",
    "MessageResponse",
    "NotificationList",
    "NotificationRead",
    "ProductDiscountRequest",
    "ProductPriceRead",
    "RealtimeStatusRead",
    "SchedulerStatusRead",
    "TickResultRead",
    "UnreadCount",
    "UpcomingDiscountRead",
    "UpdatedCount",
]
