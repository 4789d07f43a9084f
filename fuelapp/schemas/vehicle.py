"""Schemas for vehicles and their documents."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from fuelapp.models import DocumentType, VehicleFuelType, VehicleStatus, VehicleType
from fuelapp.schemas.base import ApiModel


class VehicleCreate(ApiModel):
    registration_number: str = Field(..., min_length=2, max_length=32)
    vehicle_type: VehicleType
    fuel_type: VehicleFuelType
    make: str | None = Field(default=None, max_length=64)
    model: str | None = Field(default=None, max_length=64)
    year: int | None = Field(default=None, ge=1900, le=2100)
    company_id: str | None = None


class VehicleRejectRequest(ApiModel):
    reason: str | None = Field(default=None, max_length=1000)


class VehicleRead(ApiModel):
    id: str
    registration_number: str
    owner_id: str
    company_id: str | None = None
    vehicle_type: VehicleType
    fuel_type: VehicleFuelType
    make: str | None = None
    model: str | None = None
    year: int | None = None
    status: VehicleStatus
    approved_at: datetime | None = None
    approved_by: str | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None


class VehicleDocumentCreate(ApiModel):
    document_type: DocumentType
    file_name: str = Field(..., min_length=1, max_length=255)
    file_path: str = Field(..., min_length=1, max_length=512)
    file_size: int | None = Field(default=None, ge=0)
    mime_type: str | None = Field(default=None, max_length=128)


class VehicleDocumentRead(VehicleDocumentCreate):
    id: str
    vehicle_id: str
    uploaded_at: datetime | None = None


__all__ = [
    "VehicleCreate",
    "VehicleDocumentCreate",
    "VehicleDocumentRead",
    "VehicleRead",
    "VehicleRejectRequest",
]
