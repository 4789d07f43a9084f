"""Schemas for coupon resources."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from fuelapp.models import CouponStatus, FuelType
from fuelapp.schemas.base import ApiModel, Money, PositiveAmount


class CouponCreate(ApiModel):
    fuel_type: FuelType
    amount: PositiveAmount
    description: str | None = Field(default=None, max_length=500)
    expiry_date: datetime | None = None


class CouponRedeemRequest(ApiModel):
    code: str = Field(..., min_length=1, max_length=64)


class CouponRead(ApiModel):
    id: str
    code: str
    fuel_type: FuelType
    amount: Money
    status: CouponStatus
    description: str | None = None
    expiry_date: datetime | None = None
    used_at: datetime | None = None
    used_by: str | None = None
    created_by: str
    created_at: datetime | None = None


__all__ = ["CouponCreate", "CouponRead", "CouponRedeemRequest"]
