"""Realtime notification helpers for the infrastructure layer."""

from .dispatcher import NotificationDispatcher, serialize_notification
from .registry import Channel, ConnectionRegistry

__all__ = [
    "Channel",
    "ConnectionRegistry",
    "NotificationDispatcher",
    "serialize_notification",
]
