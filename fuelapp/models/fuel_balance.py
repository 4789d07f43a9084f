"""Fuel balance ORM model."""
from __future__ import annotations

import enum
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelapp.models.base import Base, TimestampMixin, enum_type, uuid_pk


class FuelType(str, enum.Enum):
    PETROL = "petrol"
    DIESEL = "diesel"

    @property
    def code(self) -> str:
        """Three-letter tag used in coupon codes."""
        return {FuelType.PETROL: "PET", FuelType.DIESEL: "DSL"}[self]


class FuelBalance(TimestampMixin, Base):
    """Stored quantity of one fuel type for one user."""

    __tablename__ = "fuel_balances"
    __table_args__ = (
        UniqueConstraint("user_id", "fuel_type", name="uq_fuel_balances_user_fuel_type"),
    )

    id: Mapped[str] = uuid_pk()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    fuel_type: Mapped[FuelType] = mapped_column(enum_type(FuelType, "fuel_type"), nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    user = relationship("User", back_populates="fuel_balances")


__all__ = ["FuelBalance", "FuelType"]
