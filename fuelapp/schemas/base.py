"""Shared pydantic building blocks for API payloads."""
from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from fuelapp.services.ledger import quantize


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python; readable from ORM rows."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


Money = Annotated[Decimal, PlainSerializer(lambda value: str(quantize(value)), return_type=str)]
PositiveAmount = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]


def normalize_email(value: str) -> str:
    address = value.strip().lower()
    local, _, domain = address.partition("@")
    if not local or "." not in domain:
        raise ValueError("Invalid email address")
    return address


__all__ = ["ApiModel", "Money", "PositiveAmount", "normalize_email"]
