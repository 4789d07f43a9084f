"""Schemas for fuel balances and transaction limits."""
from __future__ import annotations

from fuelapp.schemas.base import ApiModel, Money, PositiveAmount


class FuelBalancesRead(ApiModel):
    petrol: Money
    diesel: Money


class TransactionLimitsRead(ApiModel):
    user_id: str
    daily_purchase_limit: Money
    monthly_purchase_limit: Money
    daily_transfer_limit: Money
    custom: bool


class TransactionLimitsUpdate(ApiModel):
    daily_purchase_limit: PositiveAmount
    monthly_purchase_limit: PositiveAmount
    daily_transfer_limit: PositiveAmount


__all__ = ["FuelBalancesRead", "TransactionLimitsRead", "TransactionLimitsUpdate"]
