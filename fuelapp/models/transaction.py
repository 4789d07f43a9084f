"""Transaction and transaction limit ORM models."""
from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelapp.models.base import Base, TimestampMixin, enum_type, uuid_pk
from fuelapp.models.fuel_balance import FuelType


class TransactionType(str, enum.Enum):
    FUEL_PURCHASE = "fuel_purchase"
    FUEL_USAGE = "fuel_usage"
    FUEL_TRANSFER = "fuel_transfer"
    TOP_UP = "top_up"
    COUPON_REDEMPTION = "coupon_redemption"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    PAYNOW_ECOCASH = "paynow_ecocash"
    PAYNOW_TELECASH = "paynow_telecash"
    PAYNOW_VISA = "paynow_visa"
    PAYFAST = "payfast"


class Transaction(Base):
    """Append-only fuel movement record; only ``status`` and ``completed_at`` change."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_id", "user_id"),
        Index("ix_transactions_merchant_id", "merchant_id"),
    )

    id: Mapped[str] = uuid_pk()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    recipient_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    vehicle_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True
    )
    merchant_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("merchants.id", ondelete="SET NULL"), nullable=True
    )
    employee_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("merchant_employees.id", ondelete="SET NULL"), nullable=True
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        enum_type(TransactionType, "transaction_type"), nullable=False
    )
    fuel_type: Mapped[FuelType | None] = mapped_column(enum_type(FuelType, "fuel_type"))
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    monetary_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    status: Mapped[TransactionStatus] = mapped_column(
        enum_type(TransactionStatus, "transaction_status"), nullable=False, default=TransactionStatus.PENDING
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(enum_type(PaymentMethod, "payment_method"))
    reference: Mapped[str | None] = mapped_column(String(128))
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    lock_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    vehicle = relationship("Vehicle")
    merchant = relationship("Merchant", back_populates="transactions")

    __mapper_args__ = {"version_id_col": lock_version}


class TransactionLimit(TimestampMixin, Base):
    """Per-user litre limits; absent rows fall back to configured defaults."""

    __tablename__ = "transaction_limits"
    __table_args__ = (UniqueConstraint("user_id", name="uq_transaction_limits_user_id"),)

    id: Mapped[str] = uuid_pk()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    daily_purchase_limit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    monthly_purchase_limit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    daily_transfer_limit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)


__all__ = [
    "PaymentMethod",
    "Transaction",
    "TransactionLimit",
    "TransactionStatus",
    "TransactionType",
]
