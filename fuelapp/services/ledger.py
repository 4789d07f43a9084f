"""Per-user, per-fuel-type balance ledger."""
from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from fuelapp.models import FuelBalance, FuelType
from fuelapp.services.errors import InsufficientBalanceError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def quantize(amount: Decimal | int | str) -> Decimal:
    return Decimal(str(amount)).quantize(CENT)


class BalanceLedger:
    """Applies signed deltas to fuel balances as in-place increments.

    The ledger never commits; it joins whatever unit of work the caller has
    open so that a credit lands together with the change that caused it.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _insert(self):
        bind = self._session.get_bind()
        try:
            return _UPSERT_DIALECTS[bind.dialect.name]
        except KeyError as exc:
            raise RuntimeError(f"Unsupported dialect for balance upserts: {bind.dialect.name}") from exc

    def apply_delta(self, user_id: str, fuel_type: FuelType, amount: Decimal) -> Decimal:
        """Add ``amount`` (which may be negative) and return the new balance.

        A missing row is created at zero before the delta lands, in the same
        statement, so concurrent first deltas cannot lose an update.
        """
        delta = quantize(amount)
        statement = self._insert()(FuelBalance).values(
            id=str(uuid.uuid4()),
            user_id=user_id,
            fuel_type=fuel_type,
            balance=delta,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["user_id", "fuel_type"],
            set_={"balance": FuelBalance.balance + delta, "updated_at": func.now()},
        )
        self._session.execute(statement)
        balance = self.get_balance(user_id, fuel_type)
        logger.debug(
            "applied balance delta",
            extra={"user_id": user_id, "fuel_type": fuel_type.value, "delta": str(delta)},
        )
        return balance

    def debit(self, user_id: str, fuel_type: FuelType, amount: Decimal) -> Decimal:
        """Subtract ``amount`` only if the balance covers it."""
        value = quantize(amount)
        result = self._session.execute(
            update(FuelBalance)
            .where(
                FuelBalance.user_id == user_id,
                FuelBalance.fuel_type == fuel_type,
                FuelBalance.balance >= value,
            )
            .values(balance=FuelBalance.balance - value, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            available = self.get_balance(user_id, fuel_type)
            raise InsufficientBalanceError(
                f"Insufficient {fuel_type.value} balance: {available} available, {value} requested"
            )
        return self.get_balance(user_id, fuel_type)

    def initialize(self, user_id: str) -> None:
        """Ensure a zero row exists for every fuel type."""
        insert = self._insert()
        for fuel_type in FuelType:
            statement = insert(FuelBalance).values(
                id=str(uuid.uuid4()),
                user_id=user_id,
                fuel_type=fuel_type,
                balance=Decimal("0.00"),
            )
            self._session.execute(statement.on_conflict_do_nothing(index_elements=["user_id", "fuel_type"]))

    def get_balance(self, user_id: str, fuel_type: FuelType) -> Decimal:
        value = self._session.scalar(
            select(FuelBalance.balance).where(
                FuelBalance.user_id == user_id, FuelBalance.fuel_type == fuel_type
            )
        )
        return quantize(value if value is not None else 0)

    def get_balances(self, user_id: str) -> dict[FuelType, Decimal]:
        rows = self._session.execute(
            select(FuelBalance.fuel_type, FuelBalance.balance).where(FuelBalance.user_id == user_id)
        ).all()
        balances = {fuel_type: Decimal("0.00") for fuel_type in FuelType}
        for fuel_type, balance in rows:
            balances[fuel_type] = quantize(balance)
        return balances


__all__ = ["BalanceLedger", "CENT", "quantize"]
