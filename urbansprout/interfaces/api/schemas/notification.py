"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from urbansprout.domain.entities import Notification, NotificationKind, NotificationPage

from .base import CamelModel


class NotificationRead(CamelModel):
    """Representation of a notification delivered to the client."""

    id: int
    recipient_id: int
    kind: NotificationKind = Field(alias="type")
    title: str
    body: str = Field(alias="message")
    is_read: bool
    related_id: int | None = None
    related_model: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id or 0,
            recipient_id=notification.recipient_id,
            kind=notification.kind,
            title=notification.title,
            body=notification.body,
            is_read=notification.is_read,
            related_id=notification.related_id,
            related_model=notification.related_model,
            created_at=notification.created_at,
        )


class NotificationList(CamelModel):
    notifications: list[NotificationRead]
    total_notifications: int
    unread_count: int
    current_page: int
    total_pages: int

    @classmethod
    def from_page(cls, page: NotificationPage) -> "NotificationList":
        return cls(
            notifications=[NotificationRead.from_entity(item) for item in page.items],
            total_notifications=page.total_count,
            unread_count=page.unread_count,
            current_page=page.page,
            total_pages=page.total_pages,
        )


class UnreadCount(CamelModel):
    unread_count: int


class UpdatedCount(CamelModel):
    updated_count: int


class DeletedCount(CamelModel):
    deleted_count: int


__all__ = [
    "DeletedCount",
    "NotificationList",
    "NotificationRead",
    "UnreadCount",
    "UpdatedCount",
]
