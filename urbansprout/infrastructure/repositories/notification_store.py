"""Durable notification storage with per-recipient read state."""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from urbansprout.domain.entities import (
    RELATED_MODELS,
    Notification,
    NotificationKind,
    NotificationPage,
)
from urbansprout.domain.errors import ForbiddenError, NotFoundError, ValidationError
from urbansprout.infrastructure.database import SessionFactory, session_scope
from urbansprout.infrastructure.models import NotificationModel
from urbansprout.utils import ensure_utc, now_naive_utc

MAX_PAGE_SIZE = 100


class NotificationStore:
    """Provide CRUD operations for :class:`Notification` objects.

    Every method opens its own session from ``session_factory``, so one store
    instance can be shared by request handlers, websocket connections and the
    dispatcher. The store never talks to live channels.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def create(
        self,
        recipient_id: int | None,
        kind: NotificationKind | str | None,
        title: str,
        body: str,
        *,
        related_id: int | None = None,
        related_model: str | None = None,
    ) -> Notification:
        if not recipient_id:
            raise ValidationError("A notification recipient is required")
        resolved_kind = self._resolve_kind(kind)
        if not title or not title.strip():
            raise ValidationError("A notification title is required")
        if not body or not body.strip():
            raise ValidationError("A notification message is required")
        if related_model is not None and related_model not in RELATED_MODELS:
            raise ValidationError(f"Unsupported related model '{related_model}'")

        with session_scope(self._session_factory) as session:
            model = NotificationModel(
                recipient_id=recipient_id,
                kind=resolved_kind.value,
                title=title.strip(),
                body=body.strip(),
                related_id=related_id,
                related_model=related_model,
                is_read=False,
                created_at=now_naive_utc(),
            )
            session.add(model)
            session.commit()
            session.refresh(model)
            return self._to_entity(model)

    def list(
        self,
        recipient_id: int,
        *,
        page: int = 1,
        page_size: int = 20,
        unread_only: bool = False,
    ) -> NotificationPage:
        """Return one newest-first page of notifications for ``recipient_id``."""

        if page < 1:
            raise ValidationError("Page must be greater than zero")
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")

        with session_scope(self._session_factory) as session:
            query = session.query(NotificationModel).filter(
                NotificationModel.recipient_id == recipient_id
            )
            if unread_only:
                query = query.filter(NotificationModel.is_read.is_(False))
            total = query.count()
            models = (
                query.order_by(
                    NotificationModel.created_at.desc(), NotificationModel.id.desc()
                )
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )
            return NotificationPage(
                items=[self._to_entity(model) for model in models],
                total_count=total,
                unread_count=self._count_unread(session, recipient_id),
                page=page,
                page_size=page_size,
            )

    def unread_count(self, recipient_id: int) -> int:
        with session_scope(self._session_factory) as session:
            return self._count_unread(session, recipient_id)

    def get(self, recipient_id: int, notification_id: int) -> Notification:
        with session_scope(self._session_factory) as session:
            return self._to_entity(self._get_owned(session, recipient_id, notification_id))

    def mark_read(self, recipient_id: int, notification_id: int) -> Notification:
        """Mark a single notification as read; calling it again is harmless."""

        with session_scope(self._session_factory) as session:
            model = self._get_owned(session, recipient_id, notification_id)
            if not model.is_read:
                model.is_read = True
                session.commit()
                session.refresh(model)
            return self._to_entity(model)

    def mark_all_read(self, recipient_id: int) -> int:
        with session_scope(self._session_factory) as session:
            affected = (
                session.query(NotificationModel)
                .filter(
                    NotificationModel.recipient_id == recipient_id,
                    NotificationModel.is_read.is_(False),
                )
                .update({NotificationModel.is_read: True}, synchronize_session=False)
            )
            session.commit()
            return affected

    def delete(self, recipient_id: int, notification_id: int) -> None:
        with session_scope(self._session_factory) as session:
            model = self._get_owned(session, recipient_id, notification_id)
            session.delete(model)
            session.commit()

    def delete_all(self, recipient_id: int) -> int:
        with session_scope(self._session_factory) as session:
            deleted = (
                session.query(NotificationModel)
                .filter(NotificationModel.recipient_id == recipient_id)
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted

    @staticmethod
    def _resolve_kind(kind: NotificationKind | str | None) -> NotificationKind:
        if kind is None or kind == "":
            raise ValidationError("A notification type is required")
        try:
            return NotificationKind(kind)
        except ValueError as exc:
            raise ValidationError(f"Unknown notification type '{kind}'") from exc

    @staticmethod
    def _count_unread(session: Session, recipient_id: int) -> int:
        return (
            session.query(func.count(NotificationModel.id))
            .filter(
                NotificationModel.recipient_id == recipient_id,
                NotificationModel.is_read.is_(False),
            )
            .scalar()
            or 0
        )

    @staticmethod
    def _get_owned(
        session: Session, recipient_id: int, notification_id: int
    ) -> NotificationModel:
        model = session.get(NotificationModel, notification_id)
        if model is None:
            raise NotFoundError("Notification not found")
        if model.recipient_id != recipient_id:
            raise ForbiddenError("Not authorized to access this notification")
        return model

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            recipient_id=model.recipient_id,
            kind=NotificationKind(model.kind),
            title=model.title,
            body=model.body,
            is_read=model.is_read,
            related_id=model.related_id,
            related_model=model.related_model,
            created_at=ensure_utc(model.created_at),
        )


__all__ = ["MAX_PAGE_SIZE", "NotificationStore"]
