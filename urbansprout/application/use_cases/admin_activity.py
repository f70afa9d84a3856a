"""Sink for administrator actions and their realtime fan-out."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from urbansprout.domain.entities import AdminActivity, User
from urbansprout.infrastructure.notifications import NotificationDispatcher
from urbansprout.infrastructure.repositories import AdminActivityRepository
from urbansprout.utils import isoformat_or_none

logger = logging.getLogger(__name__)

_ACTION_ICONS = {
    "user_created": "users",
    "user_updated": "users",
    "user_deleted": "users",
    "product_created": "shopping-bag",
    "product_updated": "shopping-bag",
    "product_deleted": "shopping-bag",
    "order_updated": "shopping-bag",
    "order_cancelled": "shopping-bag",
    "blog_approved": "file-text",
    "blog_rejected": "file-text",
    "blog_deleted": "file-text",
    "discount_created": "tag",
    "discount_updated": "tag",
    "discount_deleted": "tag",
    "discount_applied": "tag",
    "discount_removed": "tag",
    "settings_updated": "cog",
    "category_created": "folder",
    "category_updated": "folder",
    "category_deleted": "folder",
}

_ACTION_TITLES = {
    "user_created": "User Created",
    "user_updated": "User Updated",
    "user_deleted": "User Deleted",
    "product_created": "Product Created",
    "product_updated": "Product Updated",
    "product_deleted": "Product Deleted",
    "order_updated": "Order Updated",
    "order_cancelled": "Order Cancelled",
    "blog_approved": "Blog Approved",
    "blog_rejected": "Blog Rejected",
    "blog_deleted": "Blog Deleted",
    "discount_created": "Discount Created",
    "discount_updated": "Discount Updated",
    "discount_deleted": "Discount Deleted",
    "discount_applied": "Discount Applied",
    "discount_removed": "Discount Removed",
    "settings_updated": "Settings Updated",
    "category_created": "Category Created",
    "category_updated": "Category Updated",
    "category_deleted": "Category Deleted",
}

DEFAULT_ICON = "cog"
DEFAULT_TITLE = "Admin Action"


def action_icon(action: str) -> str:
    return _ACTION_ICONS.get(action, DEFAULT_ICON)


def action_title(action: str) -> str:
    return _ACTION_TITLES.get(action, DEFAULT_TITLE)


def serialize_admin_activity(activity: AdminActivity) -> dict[str, Any]:
    return {
        "id": activity.id,
        "adminName": activity.admin_name,
        "action": activity.action,
        "title": action_title(activity.action),
        "description": activity.description,
        "timestamp": isoformat_or_none(activity.created_at),
        "icon": action_icon(activity.action),
    }


def record_admin_activity(
    session: Session,
    dispatcher: NotificationDispatcher | None,
    *,
    admin: User,
    action: str,
    description: str,
    target_id: int | None = None,
    target_model: str | None = None,
) -> AdminActivity | None:
    """Persist an admin action and announce it to connected administrators.

    Failures are logged and reported as ``None`` so the calling admin
    operation is never rolled back because of the activity feed.
    """

    try:
        activity = AdminActivityRepository(session).create(
            AdminActivity(
                id=None,
                admin_id=admin.id,
                admin_name=admin.name,
                action=action,
                description=description,
                target_id=target_id,
                target_model=target_model,
            )
        )
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to record admin activity '%s'", action)
        return None

    if dispatcher is not None:
        dispatcher.schedule(
            dispatcher.broadcast_admin_activity, serialize_admin_activity(activity)
        )
    return activity


def list_recent_admin_activity(session: Session, limit: int = 3) -> list[AdminActivity]:
    return AdminActivityRepository(session).list_recent(limit=max(1, limit))


__all__ = [
    "action_icon",
    "action_title",
    "list_recent_admin_activity",
    "record_admin_activity",
    "serialize_admin_activity",
]
