"""Fuel balance and transaction limit endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.api.routes.auth import get_current_principal, require_permission
from fuelapp.core.security import Principal
from fuelapp.models import AdminPermission, FuelType
from fuelapp.schemas import FuelBalancesRead, TransactionLimitsRead, TransactionLimitsUpdate
from fuelapp.services.errors import FuelServiceError
from fuelapp.services.ledger import BalanceLedger
from fuelapp.services.transactions import TransactionService

router = APIRouter()


@router.get("/fuel-balances", response_model=FuelBalancesRead)
def get_fuel_balances(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> FuelBalancesRead:
    balances = BalanceLedger(session).get_balances(principal.user_id)
    return FuelBalancesRead(petrol=balances[FuelType.PETROL], diesel=balances[FuelType.DIESEL])


@router.get("/transaction-limits", response_model=TransactionLimitsRead)
def get_transaction_limits(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> TransactionLimitsRead:
    limits = TransactionService(session).get_limits(principal.user_id)
    return TransactionLimitsRead.model_validate(limits)


@router.put("/transaction-limits/{user_id}", response_model=TransactionLimitsRead)
def set_transaction_limits(
    user_id: str,
    payload: TransactionLimitsUpdate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.MANAGE_USERS)),
) -> TransactionLimitsRead:
    try:
        limits = TransactionService(session).set_limits(
            principal,
            user_id,
            daily_purchase_limit=payload.daily_purchase_limit,
            monthly_purchase_limit=payload.monthly_purchase_limit,
            daily_transfer_limit=payload.daily_transfer_limit,
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return TransactionLimitsRead.model_validate(limits)
