"""Merchant, station employee and withdrawal ORM models."""
from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelapp.models.base import Base, TimestampMixin, enum_type, uuid_pk


class MerchantStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING = "pending"


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class WithdrawalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"


class Merchant(TimestampMixin, Base):
    """Fuel station accumulating a pending balance from completed purchases."""

    __tablename__ = "merchants"
    __table_args__ = (Index("ix_merchants_user_id", "user_id"),)

    id: Mapped[str] = uuid_pk()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    station_name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(Text)
    contact_phone: Mapped[str | None] = mapped_column(String(32))
    bank_name: Mapped[str | None] = mapped_column(String(128))
    account_number: Mapped[str | None] = mapped_column(String(34))
    account_holder: Mapped[str | None] = mapped_column(String(255))
    branch_code: Mapped[str | None] = mapped_column(String(32))
    pending_balance: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    status: Mapped[MerchantStatus] = mapped_column(
        enum_type(MerchantStatus, "merchant_status"), nullable=False, default=MerchantStatus.ACTIVE
    )

    employees = relationship("MerchantEmployee", back_populates="merchant")
    transactions = relationship("Transaction", back_populates="merchant")
    withdrawals = relationship("WithdrawalRequest", back_populates="merchant")


class MerchantEmployee(TimestampMixin, Base):
    __tablename__ = "merchant_employees"
    __table_args__ = (
        UniqueConstraint("merchant_id", "employee_code", name="uq_merchant_employees_merchant_code"),
    )

    id: Mapped[str] = uuid_pk()
    merchant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    employee_code: Mapped[str] = mapped_column(String(64), nullable=False)
    hashed_pin: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[EmployeeStatus] = mapped_column(
        enum_type(EmployeeStatus, "employee_status"), nullable=False, default=EmployeeStatus.ACTIVE
    )

    merchant = relationship("Merchant", back_populates="employees")


class WithdrawalRequest(Base):
    __tablename__ = "withdrawal_requests"
    __table_args__ = (Index("ix_withdrawal_requests_status", "status"),)

    id: Mapped[str] = uuid_pk()
    merchant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[WithdrawalStatus] = mapped_column(
        enum_type(WithdrawalStatus, "withdrawal_status"), nullable=False, default=WithdrawalStatus.PENDING
    )
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    processed_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text)

    merchant = relationship("Merchant", back_populates="withdrawals")


__all__ = [
    "EmployeeStatus",
    "Merchant",
    "MerchantEmployee",
    "MerchantStatus",
    "WithdrawalRequest",
    "WithdrawalStatus",
]
