"""SQLAlchemy models for products and the discounts applied to them."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from urbansprout.infrastructure.database import Base


class ProductModel(Base):
    """Database representation of the priced slice of a product.

    ``version`` is bumped by every discount materialization and guards the
    compare-and-set performed by the product repository.
    """

    __tablename__ = "product"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    regular_price = Column(Float, nullable=False)
    published = Column(Boolean, nullable=False, default=True)
    archived = Column(Boolean, nullable=False, default=False)
    effective_price = Column(Float, nullable=True)
    best_discount_id = Column(Integer, nullable=True)
    version = Column(Integer, nullable=False, default=0)

    applied_discounts = relationship(
        "AppliedDiscountModel",
        lazy="selectin",
        order_by="AppliedDiscountModel.applied_at",
        cascade="all, delete-orphan",
    )


class AppliedDiscountModel(Base):
    """Snapshot of a discount attached to a product."""

    __tablename__ = "applied_discount"
    __table_args__ = (
        UniqueConstraint("product_id", "discount_id", name="uq_applied_discount_product"),
    )

    id = Column(Integer, primary_key=True)
    product_id = Column(
        Integer, ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True
    )
    discount_id = Column(Integer, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    kind = Column(String(20), nullable=False)
    value = Column(Float, nullable=False)
    max_discount_amount = Column(Float, nullable=True)
    applied_by = Column(String(20), nullable=False, default="automatic")
    applied_at = Column(DateTime(), nullable=False)


__all__ = ["AppliedDiscountModel", "ProductModel"]
