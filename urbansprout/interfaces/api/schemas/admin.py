"""Schemas for admin monitoring endpoints."""

from __future__ import annotations

from typing import Any

from .base import CamelModel


class SchedulerStatusRead(CamelModel):
    running: bool
    interval_seconds: float
    last_run_at: str | None = None
    last_result: dict[str, Any] | None = None


class RealtimeStatusRead(CamelModel):
    connected_users: int
    connected_user_ids: list[int]
    scheduler: SchedulerStatusRead


class AdminActivityRead(CamelModel):
    id: int
    admin_name: str
    action: str
    title: str
    description: str
    timestamp: str | None = None
    icon: str


__all__ = ["AdminActivityRead", "RealtimeStatusRead", "SchedulerStatusRead"]
