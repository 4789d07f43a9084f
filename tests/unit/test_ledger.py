from __future__ import annotations

from decimal import Decimal
from itertools import permutations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fuelapp.models import FuelBalance, FuelType
from fuelapp.services.errors import InsufficientBalanceError
from fuelapp.services.ledger import BalanceLedger, quantize


def test_quantize_rounds_to_cents() -> None:
    assert quantize("10") == Decimal("10.00")
    assert quantize(Decimal("2.345")) == Decimal("2.34")


@pytest.mark.parametrize("order", list(permutations([Decimal("5.25"), Decimal("-1.25"), Decimal("10")])))
def test_deltas_sum_regardless_of_order(make_user, db_session: Session, order) -> None:
    user = make_user("ledger@example.com")
    ledger = BalanceLedger(db_session)

    for delta in order:
        ledger.apply_delta(user.id, FuelType.PETROL, delta)
    db_session.commit()

    assert ledger.get_balance(user.id, FuelType.PETROL) == Decimal("14.00")
    assert ledger.get_balance(user.id, FuelType.DIESEL) == Decimal("0.00")


def test_apply_delta_creates_missing_row(db_session: Session, make_user) -> None:
    user = make_user("fresh@example.com")
    db_session.execute(FuelBalance.__table__.delete().where(FuelBalance.user_id == user.id))
    db_session.commit()

    ledger = BalanceLedger(db_session)
    assert ledger.apply_delta(user.id, FuelType.DIESEL, Decimal("7.5")) == Decimal("7.50")
    db_session.commit()

    rows = db_session.scalar(select(func.count(FuelBalance.id)).where(FuelBalance.user_id == user.id))
    assert rows == 1


def test_initialize_is_idempotent(db_session: Session, make_user) -> None:
    user = make_user("twice@example.com")
    ledger = BalanceLedger(db_session)
    ledger.initialize(user.id)
    db_session.commit()

    rows = db_session.scalar(select(func.count(FuelBalance.id)).where(FuelBalance.user_id == user.id))
    assert rows == len(FuelType)
    assert ledger.get_balances(user.id) == {FuelType.PETROL: Decimal("0.00"), FuelType.DIESEL: Decimal("0.00")}


def test_debit_requires_sufficient_balance(db_session: Session, make_user) -> None:
    user = make_user("debit@example.com")
    ledger = BalanceLedger(db_session)
    ledger.apply_delta(user.id, FuelType.PETROL, Decimal("5"))
    db_session.commit()

    with pytest.raises(InsufficientBalanceError):
        ledger.debit(user.id, FuelType.PETROL, Decimal("5.01"))

    assert ledger.debit(user.id, FuelType.PETROL, Decimal("5")) == Decimal("0.00")
