"""Schemas for merchants, station employees and withdrawals."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field

from fuelapp.models import EmployeeStatus, MerchantStatus, WithdrawalStatus
from fuelapp.schemas.base import ApiModel, Money, PositiveAmount


class MerchantCreate(ApiModel):
    station_name: str = Field(..., min_length=1, max_length=255)
    address: str | None = None
    contact_phone: str | None = Field(default=None, max_length=32)
    bank_name: str | None = Field(default=None, max_length=128)
    account_number: str | None = Field(default=None, min_length=4, max_length=34)
    account_holder: str | None = Field(default=None, max_length=255)
    branch_code: str | None = Field(default=None, max_length=32)


class MerchantRead(ApiModel):
    id: str
    user_id: str
    station_name: str
    address: str | None = None
    contact_phone: str | None = None
    bank_name: str | None = None
    account_holder: str | None = None
    pending_balance: Money
    status: MerchantStatus
    created_at: datetime | None = None


class EmployeeCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    employee_code: str = Field(..., min_length=1, max_length=64)
    pin: str = Field(..., pattern=r"^\d{4,8}$")


class EmployeeRead(ApiModel):
    id: str
    merchant_id: str
    name: str
    employee_code: str
    status: EmployeeStatus


class WithdrawalCreate(ApiModel):
    amount: PositiveAmount
    notes: str | None = Field(default=None, max_length=1000)


class WithdrawalProcess(ApiModel):
    status: WithdrawalStatus
    notes: str | None = Field(default=None, max_length=1000)


class WithdrawalRead(ApiModel):
    id: str
    merchant_id: str
    amount: Money
    status: WithdrawalStatus
    requested_at: datetime
    processed_at: datetime | None = None
    processed_by: str | None = None
    notes: str | None = None


__all__ = [
    "EmployeeCreate",
    "EmployeeRead",
    "MerchantCreate",
    "MerchantRead",
    "WithdrawalCreate",
    "WithdrawalProcess",
    "WithdrawalRead",
]
