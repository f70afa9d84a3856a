"""Persistence helpers for the administrator activity feed."""

from __future__ import annotations

from sqlalchemy.orm import Session

from urbansprout.domain.entities import AdminActivity
from urbansprout.infrastructure.models import AdminActivityModel
from urbansprout.utils import ensure_utc, now_naive_utc


class AdminActivityRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, activity: AdminActivity) -> AdminActivity:
        model = AdminActivityModel(
            admin_id=activity.admin_id,
            admin_name=activity.admin_name,
            action=activity.action,
            description=activity.description,
            target_id=activity.target_id,
            target_model=activity.target_model,
            created_at=now_naive_utc(),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_recent(self, limit: int = 3) -> list[AdminActivity]:
        query = (
            self.session.query(AdminActivityModel)
            .order_by(AdminActivityModel.created_at.desc(), AdminActivityModel.id.desc())
            .limit(limit)
        )
        return [self._to_entity(model) for model in query.all()]

    @staticmethod
    def _to_entity(model: AdminActivityModel) -> AdminActivity:
        return AdminActivity(
            id=model.id,
            admin_id=model.admin_id,
            admin_name=model.admin_name,
            action=model.action,
            description=model.description,
            target_id=model.target_id,
            target_model=model.target_model,
            created_at=ensure_utc(model.created_at),
        )


__all__ = ["AdminActivityRepository"]
