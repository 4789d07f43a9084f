"""User ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelapp.models.base import Base, TimestampMixin, enum_type, uuid_pk


class UserType(str, enum.Enum):
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"
    GOVERNMENT = "government"
    MERCHANT = "merchant"
    AGENT = "agent"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class User(TimestampMixin, Base):
    """Account holder; created on first sign-in and never hard-deleted."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id: Mapped[str] = uuid_pk()
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(128))
    last_name: Mapped[str | None] = mapped_column(String(128))
    phone: Mapped[str | None] = mapped_column(String(32))
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    user_type: Mapped[UserType] = mapped_column(
        enum_type(UserType, "user_type"), nullable=False, default=UserType.INDIVIDUAL
    )
    status: Mapped[UserStatus] = mapped_column(
        enum_type(UserStatus, "user_status"), nullable=False, default=UserStatus.ACTIVE
    )

    fuel_balances = relationship("FuelBalance", back_populates="user")
    vehicles = relationship("Vehicle", back_populates="owner", foreign_keys="Vehicle.owner_id")
    admin_role = relationship("AdminRole", back_populates="user", uselist=False)


__all__ = ["User", "UserStatus", "UserType"]
