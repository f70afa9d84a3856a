"""Administrator monitoring endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from urbansprout.application.use_cases.admin_activity import (
    list_recent_admin_activity,
    serialize_admin_activity,
)
from urbansprout.domain.entities import User
from urbansprout.infrastructure.database import get_db
from urbansprout.infrastructure.notifications import ConnectionRegistry
from urbansprout.infrastructure.scheduler import DiscountLifecycleScheduler
from urbansprout.interfaces.api.dependencies import get_registry, get_scheduler, require_admin
from urbansprout.interfaces.api.schemas import (
    AdminActivityRead,
    Envelope,
    RealtimeStatusRead,
    SchedulerStatusRead,
)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/realtime/status", response_model=Envelope[RealtimeStatusRead])
def realtime_status(
    _: User = Depends(require_admin),
    registry: ConnectionRegistry = Depends(get_registry),
    scheduler: DiscountLifecycleScheduler = Depends(get_scheduler),
) -> Envelope[RealtimeStatusRead]:
    return Envelope[RealtimeStatusRead](
        data=RealtimeStatusRead(
            connected_users=registry.connected_count(),
            connected_user_ids=registry.connected_ids(),
            scheduler=SchedulerStatusRead(**scheduler.status()),
        )
    )


@router.get("/activity", response_model=Envelope[list[AdminActivityRead]])
def recent_admin_activity(
    limit: int = Query(default=3, ge=1, le=50),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> Envelope[list[AdminActivityRead]]:
    activities = list_recent_admin_activity(db, limit=limit)
    return Envelope[list[AdminActivityRead]](
        data=[AdminActivityRead(**serialize_admin_activity(item)) for item in activities]
    )
