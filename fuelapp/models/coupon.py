"""Coupon ORM model."""
from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from fuelapp.models.base import Base, enum_type, uuid_pk
from fuelapp.models.fuel_balance import FuelType


class CouponStatus(str, enum.Enum):
    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    DEACTIVATED = "deactivated"


class Coupon(Base):
    """Single-use code redeemable for a fixed fuel quantity."""

    __tablename__ = "coupons"
    __table_args__ = (
        UniqueConstraint("code", name="uq_coupons_code"),
        Index("ix_coupons_status", "status"),
    )

    id: Mapped[str] = uuid_pk()
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    fuel_type: Mapped[FuelType] = mapped_column(enum_type(FuelType, "fuel_type"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[CouponStatus] = mapped_column(
        enum_type(CouponStatus, "coupon_status"), nullable=False, default=CouponStatus.ACTIVE
    )
    description: Mapped[str | None] = mapped_column(Text)
    expiry_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    used_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


__all__ = ["Coupon", "CouponStatus"]
