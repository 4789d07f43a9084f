"""Vehicle and vehicle document ORM models."""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuelapp.models.base import Base, TimestampMixin, enum_type, uuid_pk


class VehicleType(str, enum.Enum):
    SEDAN = "sedan"
    SUV = "suv"
    TRUCK = "truck"
    VAN = "van"
    BUS = "bus"


class VehicleFuelType(str, enum.Enum):
    PETROL = "petrol"
    DIESEL = "diesel"
    HYBRID = "hybrid"


class VehicleStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class DocumentType(str, enum.Enum):
    REGISTRATION_BOOK = "registration_book"
    LICENSE = "license"
    INSURANCE = "insurance"


class Vehicle(TimestampMixin, Base):
    """Registered vehicle awaiting or holding administrator approval."""

    __tablename__ = "vehicles"
    __table_args__ = (
        UniqueConstraint("registration_number", name="uq_vehicles_registration_number"),
        Index("ix_vehicles_owner_id", "owner_id"),
        Index("ix_vehicles_status", "status"),
    )

    id: Mapped[str] = uuid_pk()
    registration_number: Mapped[str] = mapped_column(String(32), nullable=False)
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    company_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("companies.id", ondelete="SET NULL"), nullable=True
    )
    vehicle_type: Mapped[VehicleType] = mapped_column(enum_type(VehicleType, "vehicle_type"), nullable=False)
    make: Mapped[str | None] = mapped_column(String(64))
    model: Mapped[str | None] = mapped_column(String(64))
    year: Mapped[int | None] = mapped_column(Integer)
    fuel_type: Mapped[VehicleFuelType] = mapped_column(
        enum_type(VehicleFuelType, "vehicle_fuel_type"), nullable=False
    )
    status: Mapped[VehicleStatus] = mapped_column(
        enum_type(VehicleStatus, "vehicle_status"), nullable=False, default=VehicleStatus.PENDING
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approved_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    owner = relationship("User", back_populates="vehicles", foreign_keys=[owner_id])
    company = relationship("Company", back_populates="vehicles")
    documents = relationship("VehicleDocument", back_populates="vehicle", cascade="all, delete-orphan")


class VehicleDocument(Base):
    __tablename__ = "vehicle_documents"

    id: Mapped[str] = uuid_pk()
    vehicle_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False
    )
    document_type: Mapped[DocumentType] = mapped_column(enum_type(DocumentType, "document_type"), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(512), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer)
    mime_type: Mapped[str | None] = mapped_column(String(128))
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    vehicle = relationship("Vehicle", back_populates="documents")


__all__ = [
    "DocumentType",
    "Vehicle",
    "VehicleDocument",
    "VehicleFuelType",
    "VehicleStatus",
    "VehicleType",
]
