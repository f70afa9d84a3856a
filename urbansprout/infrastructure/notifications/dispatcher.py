"""Create notifications and push them to live channels."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from functools import partial
from typing import Any

from anyio import from_thread, to_thread

from urbansprout.domain.entities import Notification, NotificationKind
from urbansprout.domain.errors import TransportPushError
from urbansprout.infrastructure.database import SessionFactory, session_scope
from urbansprout.infrastructure.repositories import NotificationStore, UserRepository
from urbansprout.utils import isoformat_or_none

from .registry import Channel, ConnectionRegistry

logger = logging.getLogger(__name__)

NEW_NOTIFICATION = "new_notification"
UNREAD_COUNT_UPDATE = "unread_count_update"
NOTIFICATION_READ = "notification_read"
ALL_NOTIFICATIONS_READ = "all_notifications_read"
ADMIN_ACTIVITY = "admin_activity"


class NotificationDispatcher:
    """Entry point used by business code to notify users.

    The store is always written first; live delivery is best effort and a
    failed push never undoes or fails the durable write.
    """

    def __init__(
        self,
        store: NotificationStore,
        registry: ConnectionRegistry,
        session_factory: SessionFactory,
    ) -> None:
        self._store = store
        self._registry = registry
        self._session_factory = session_factory
        self._tasks: set[asyncio.Task] = set()

    @property
    def store(self) -> NotificationStore:
        return self._store

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    async def send(
        self,
        recipient_id: int,
        kind: NotificationKind | str,
        title: str,
        body: str,
        *,
        related_id: int | None = None,
        related_model: str | None = None,
    ) -> Notification:
        notification = await to_thread.run_sync(
            partial(
                self._store.create,
                recipient_id,
                kind,
                title,
                body,
                related_id=related_id,
                related_model=related_model,
            )
        )

        channel = self._registry.get(recipient_id)
        if channel is not None:
            await self._push(
                channel, NEW_NOTIFICATION, serialize_notification(notification)
            )
            await self.push_unread_count(recipient_id)
        return notification

    async def send_bulk(
        self,
        recipient_ids: Iterable[int],
        kind: NotificationKind | str,
        title: str,
        body: str,
        *,
        related_id: int | None = None,
        related_model: str | None = None,
    ) -> list[Notification]:
        """Notify every distinct recipient, skipping the ones that fail."""

        delivered: list[Notification] = []
        seen: set[int] = set()
        for recipient_id in recipient_ids:
            if not recipient_id or recipient_id in seen:
                continue
            seen.add(recipient_id)
            try:
                notification = await self.send(
                    recipient_id,
                    kind,
                    title,
                    body,
                    related_id=related_id,
                    related_model=related_model,
                )
            except Exception:
                logger.exception("Failed to notify user %s", recipient_id)
                continue
            delivered.append(notification)
        return delivered

    async def send_to_role(
        self,
        role: str,
        kind: NotificationKind | str,
        title: str,
        body: str,
        *,
        related_id: int | None = None,
        related_model: str | None = None,
    ) -> list[Notification]:
        recipient_ids = await to_thread.run_sync(self._list_ids_by_role, role)
        return await self.send_bulk(
            recipient_ids,
            kind,
            title,
            body,
            related_id=related_id,
            related_model=related_model,
        )

    async def push_unread_count(self, recipient_id: int) -> int:
        count = await to_thread.run_sync(self._store.unread_count, recipient_id)
        for channel in self._recipient_channels(recipient_id):
            await self._push(channel, UNREAD_COUNT_UPDATE, {"unreadCount": count})
        return count

    async def mark_read(self, recipient_id: int, notification_id: int) -> Notification:
        notification = await to_thread.run_sync(
            self._store.mark_read, recipient_id, notification_id
        )
        await self.announce_read(recipient_id, notification_id)
        return notification

    async def mark_all_read(self, recipient_id: int) -> int:
        updated = await to_thread.run_sync(self._store.mark_all_read, recipient_id)
        await self.announce_all_read(recipient_id)
        return updated

    async def announce_read(self, recipient_id: int, notification_id: int) -> None:
        """Tell every device of ``recipient_id`` that a notification was read."""

        for channel in self._recipient_channels(recipient_id):
            await self._push(
                channel, NOTIFICATION_READ, {"notificationId": notification_id}
            )
        await self.push_unread_count(recipient_id)

    async def announce_all_read(self, recipient_id: int) -> None:
        for channel in self._recipient_channels(recipient_id):
            await self._push(channel, ALL_NOTIFICATIONS_READ, {})
        await self.push_unread_count(recipient_id)

    async def broadcast_admin_activity(self, payload: dict[str, Any]) -> None:
        for channel in self._registry.admin_channels():
            await self._push(channel, ADMIN_ACTIVITY, payload)

    def schedule(self, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        """Run ``func(*args)`` from synchronous code without waiting for it.

        Inside the event loop the coroutine becomes a task; from a worker
        thread started by anyio (sync route handlers) it is run through the
        loop that owns the thread.
        """

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(func, *args)
            except RuntimeError:
                logger.debug(
                    "No event loop available, skipping %s", getattr(func, "__name__", func)
                )
        else:
            task = loop.create_task(func(*args))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def _recipient_channels(self, recipient_id: int) -> list[Channel]:
        channels = self._registry.members(self._registry.group_for(recipient_id))
        bound = self._registry.get(recipient_id)
        if bound is not None and all(channel is not bound for channel in channels):
            channels.append(bound)
        return channels

    def _list_ids_by_role(self, role: str) -> list[int]:
        with session_scope(self._session_factory) as session:
            return UserRepository(session).list_ids_by_role(role)

    async def _push(self, channel: Channel, event: str, payload: Any) -> bool:
        try:
            await _deliver(channel, {"type": event, "data": payload})
        except TransportPushError:
            logger.warning("Live push of %s failed", event, exc_info=True)
            return False
        return True


async def _deliver(channel: Channel, message: dict[str, Any]) -> None:
    try:
        await channel.send_json(message)
    except Exception as exc:
        raise TransportPushError(f"Failed to push '{message['type']}'") from exc


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the wire representation shared by REST and live pushes."""

    return {
        "id": notification.id,
        "recipientId": notification.recipient_id,
        "type": notification.kind.value,
        "title": notification.title,
        "message": notification.body,
        "isRead": notification.is_read,
        "relatedId": notification.related_id,
        "relatedModel": notification.related_model,
        "createdAt": isoformat_or_none(notification.created_at),
    }


__all__ = [
    "ADMIN_ACTIVITY",
    "ALL_NOTIFICATIONS_READ",
    "NEW_NOTIFICATION",
    "NOTIFICATION_READ",
    "NotificationDispatcher",
    "UNREAD_COUNT_UPDATE",
    "serialize_notification",
]
