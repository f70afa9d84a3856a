"""SQLAlchemy model for the administrator activity feed."""

from sqlalchemy import Column, DateTime, Integer, String

from urbansprout.infrastructure.database import Base
from urbansprout.utils import now_naive_utc


class AdminActivityModel(Base):
    __tablename__ = "admin_activity"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, nullable=False, index=True)
    admin_name = Column(String(100), nullable=False)
    action = Column(String(50), nullable=False)
    description = Column(String(500), nullable=False)
    target_id = Column(Integer, nullable=True)
    target_model = Column(String(30), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_naive_utc, index=True)


__all__ = ["AdminActivityModel"]
