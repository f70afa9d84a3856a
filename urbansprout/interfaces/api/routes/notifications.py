"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, WebSocket

from urbansprout.domain.entities import User
from urbansprout.infrastructure.notifications import NotificationDispatcher
from urbansprout.infrastructure.repositories import NotificationStore
from urbansprout.interfaces.api.dependencies import (
    get_current_user,
    get_dispatcher,
    get_notification_store,
)
from urbansprout.interfaces.api.schemas import (
    DeletedCount,
    Envelope,
    MessageResponse,
    NotificationList,
    NotificationRead,
    UnreadCount,
    UpdatedCount,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=Envelope[NotificationList])
def list_notifications(
    limit: int = Query(default=20),
    page: int = Query(default=1),
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    current_user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
) -> Envelope[NotificationList]:
    """Return one newest-first page of the user's notifications."""

    result = store.list(current_user.id, page=page, page_size=limit, unread_only=unread_only)
    return Envelope[NotificationList](data=NotificationList.from_page(result))


@router.get("/unread-count", response_model=Envelope[UnreadCount])
def get_unread_count(
    current_user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
) -> Envelope[UnreadCount]:
    count = store.unread_count(current_user.id)
    return Envelope[UnreadCount](data=UnreadCount(unread_count=count))


@router.put("/read-all", response_model=Envelope[UpdatedCount])
def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Envelope[UpdatedCount]:
    updated = store.mark_all_read(current_user.id)
    dispatcher.schedule(dispatcher.announce_all_read, current_user.id)
    return Envelope[UpdatedCount](
        data=UpdatedCount(updated_count=updated),
        message="All notifications marked as read",
    )


@router.delete("/clear-all", response_model=Envelope[DeletedCount])
def clear_all_notifications(
    current_user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Envelope[DeletedCount]:
    deleted = store.delete_all(current_user.id)
    dispatcher.schedule(dispatcher.push_unread_count, current_user.id)
    return Envelope[DeletedCount](
        data=DeletedCount(deleted_count=deleted),
        message="All notifications cleared",
    )


@router.put("/{notification_id}/read", response_model=Envelope[NotificationRead])
def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Envelope[NotificationRead]:
    notification = store.mark_read(current_user.id, notification_id)
    dispatcher.schedule(dispatcher.announce_read, current_user.id, notification_id)
    return Envelope[NotificationRead](data=NotificationRead.from_entity(notification))


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> MessageResponse:
    store.delete(current_user.id, notification_id)
    dispatcher.schedule(dispatcher.push_unread_count, current_user.id)
    return MessageResponse(message="Notification deleted")


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    await websocket.app.state.gateway.handle(websocket)
