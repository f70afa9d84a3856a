"""SQLAlchemy models for discounts and their explicit product targets."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from urbansprout.infrastructure.database import Base
from urbansprout.utils import now_naive_utc


class DiscountModel(Base):
    """Database representation of an administrator managed discount."""

    __tablename__ = "discount"
    __table_args__ = (
        Index("ix_discount_window", "active", "start_at", "end_at"),
        Index("ix_discount_target", "applicable_to", "category"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(String(500), nullable=True)
    kind = Column(String(20), nullable=False, default="percentage")
    value = Column(Float, nullable=False)
    applicable_to = Column(String(20), nullable=False, default="all")
    category = Column(String(100), nullable=True)
    start_at = Column(DateTime(), nullable=False)
    end_at = Column(DateTime(), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    min_order_value = Column(Float, nullable=False, default=0)
    max_discount_amount = Column(Float, nullable=True)
    created_by = Column(Integer, ForeignKey("user.id"), nullable=True, index=True)
    auto_applied = Column(Boolean, nullable=False, default=False)
    auto_removed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(), nullable=False, default=now_naive_utc)
    updated_at = Column(DateTime(), nullable=True, onupdate=now_naive_utc)

    product_links = relationship(
        "DiscountProductModel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DiscountProductModel.product_id",
    )


class DiscountProductModel(Base):
    """Explicit product targeted by a ``products`` discount."""

    __tablename__ = "discount_product"

    discount_id = Column(
        Integer, ForeignKey("discount.id", ondelete="CASCADE"), primary_key=True
    )
    product_id = Column(Integer, primary_key=True, index=True)


__all__ = ["DiscountModel", "DiscountProductModel"]
