"""Domain entity describing an audited administrator action."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class AdminActivity:
    id: int | None
    admin_id: int
    admin_name: str
    action: str
    description: str
    target_id: int | None = None
    target_model: str | None = None
    created_at: datetime | None = None


__all__ = ["AdminActivity"]
