"""Schemas for companies and their fleets."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from fuelapp.models import DriverStatus, FleetManagerRole
from fuelapp.schemas.base import ApiModel, normalize_email
from fuelapp.schemas.vehicle import VehicleRead


class CompanyCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    registration_number: str | None = Field(default=None, max_length=64)
    address: str | None = None
    contact_email: str | None = Field(default=None, max_length=320)
    contact_phone: str | None = Field(default=None, max_length=32)


class CompanyRead(CompanyCreate):
    id: str
    created_at: datetime | None = None


class _MemberByEmail(ApiModel):
    email: str = Field(..., max_length=320)

    @field_validator("email")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_email(value)


class ManagerCreate(_MemberByEmail):
    role: FleetManagerRole = FleetManagerRole.MANAGER


class DriverCreate(_MemberByEmail):
    license_number: str | None = Field(default=None, max_length=64)
    license_expiry: datetime | None = None


class FleetManagerRead(ApiModel):
    id: str
    user_id: str
    company_id: str
    role: FleetManagerRole


class DriverRead(ApiModel):
    id: str
    user_id: str
    company_id: str | None = None
    license_number: str | None = None
    license_expiry: datetime | None = None
    status: DriverStatus


class FleetRead(ApiModel):
    company: CompanyRead
    vehicles: list[VehicleRead]
    drivers: list[DriverRead]


__all__ = [
    "CompanyCreate",
    "CompanyRead",
    "DriverCreate",
    "DriverRead",
    "FleetManagerRead",
    "FleetRead",
    "ManagerCreate",
]
