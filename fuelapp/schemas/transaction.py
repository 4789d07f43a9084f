"""Schemas for transaction resources."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from fuelapp.models import FuelType, PaymentMethod, TransactionStatus, TransactionType
from fuelapp.schemas.base import ApiModel, Money, PositiveAmount, normalize_email


class TransactionCreate(ApiModel):
    transaction_type: TransactionType
    amount: PositiveAmount
    fuel_type: FuelType | None = None
    monetary_value: PositiveAmount | None = None
    vehicle_id: str | None = None
    merchant_id: str | None = None
    employee_id: str | None = None
    payment_method: PaymentMethod | None = None
    reference: str | None = Field(default=None, max_length=128)
    notes: str | None = Field(default=None, max_length=1000)


class FuelPurchaseRequest(ApiModel):
    fuel_type: FuelType
    amount: PositiveAmount
    monetary_value: PositiveAmount | None = None
    merchant_id: str | None = None
    vehicle_id: str | None = None
    employee_id: str | None = None
    payment_method: PaymentMethod | None = None
    reference: str | None = Field(default=None, max_length=128)
    notes: str | None = Field(default=None, max_length=1000)


class TopUpRequest(ApiModel):
    fuel_type: FuelType
    amount: PositiveAmount
    monetary_value: PositiveAmount | None = None
    payment_method: PaymentMethod | None = None
    reference: str | None = Field(default=None, max_length=128)


class TransferRequest(ApiModel):
    recipient_email: str = Field(..., max_length=320)
    fuel_type: FuelType
    amount: PositiveAmount
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("recipient_email")
    @classmethod
    def _normalize_recipient(cls, value: str) -> str:
        return normalize_email(value)


class TransactionStatusUpdate(ApiModel):
    status: TransactionStatus


class TransactionRead(ApiModel):
    id: str
    user_id: str
    recipient_id: str | None = None
    vehicle_id: str | None = None
    merchant_id: str | None = None
    employee_id: str | None = None
    transaction_type: TransactionType
    fuel_type: FuelType | None = None
    amount: Money
    monetary_value: Money | None = None
    status: TransactionStatus
    payment_method: PaymentMethod | None = None
    reference: str | None = None
    notes: str | None = None
    created_at: datetime
    completed_at: datetime | None = None
    lock_version: int


class TransferRead(ApiModel):
    reference: str
    outgoing: TransactionRead
    incoming: TransactionRead


__all__ = [
    "FuelPurchaseRequest",
    "TopUpRequest",
    "TransactionCreate",
    "TransactionRead",
    "TransactionStatusUpdate",
    "TransferRead",
    "TransferRequest",
]
