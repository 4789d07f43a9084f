"""Corporate fleet ORM models."""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelapp.models.base import Base, TimestampMixin, enum_type, uuid_pk


class FleetManagerRole(str, enum.Enum):
    MANAGER = "manager"
    ADMIN = "admin"


class DriverStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING = "pending"


class Company(TimestampMixin, Base):
    """Corporate account owning a fleet of vehicles and drivers."""

    __tablename__ = "companies"

    id: Mapped[str] = uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    registration_number: Mapped[str | None] = mapped_column(String(64))
    address: Mapped[str | None] = mapped_column(Text)
    contact_email: Mapped[str | None] = mapped_column(String(320))
    contact_phone: Mapped[str | None] = mapped_column(String(32))

    managers = relationship("FleetManager", back_populates="company")
    drivers = relationship("Driver", back_populates="company")
    vehicles = relationship("Vehicle", back_populates="company")


class FleetManager(TimestampMixin, Base):
    __tablename__ = "fleet_managers"
    __table_args__ = (
        UniqueConstraint("user_id", "company_id", name="uq_fleet_managers_user_company"),
    )

    id: Mapped[str] = uuid_pk()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[FleetManagerRole] = mapped_column(
        enum_type(FleetManagerRole, "fleet_manager_role"), nullable=False, default=FleetManagerRole.MANAGER
    )

    company = relationship("Company", back_populates="managers")


class Driver(TimestampMixin, Base):
    __tablename__ = "drivers"

    id: Mapped[str] = uuid_pk()
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    company_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("companies.id", ondelete="SET NULL"), nullable=True
    )
    license_number: Mapped[str | None] = mapped_column(String(64))
    license_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[DriverStatus] = mapped_column(
        enum_type(DriverStatus, "driver_status"), nullable=False, default=DriverStatus.ACTIVE
    )

    company = relationship("Company", back_populates="drivers")


__all__ = ["Company", "Driver", "DriverStatus", "FleetManager", "FleetManagerRole"]
