"""Domain entity representing a user notification."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class NotificationKind(str, Enum):
    """Business events that produce a notification."""

    ORDER_PLACED = "order_placed"
    ORDER_STATUS_CHANGED = "order_status_changed"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"
    BLOG_APPROVED = "blog_approved"
    BLOG_REJECTED = "blog_rejected"
    BLOG_DELETED = "blog_deleted"
    COMMENT_APPROVED = "comment_approved"
    COMMENT_REJECTED = "comment_rejected"
    LIKE = "like"
    COMMENT = "comment"
    DISCOUNT_APPLIED = "discount_applied"
    GENERAL = "general"


RELATED_MODELS = frozenset({"blog", "order", "product", "discount"})


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    recipient_id: int
    kind: NotificationKind
    title: str
    body: str
    is_read: bool = False
    related_id: int | None = None
    related_model: str | None = None
    created_at: datetime | None = None


@dataclass
class NotificationPage:
    """One page of a recipient's notifications plus fresh counters."""

    items: list[Notification] = field(default_factory=list)
    total_count: int = 0
    unread_count: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0


__all__ = ["Notification", "NotificationKind", "NotificationPage", "RELATED_MODELS"]
