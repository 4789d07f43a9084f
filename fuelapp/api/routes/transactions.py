"""Transaction recording, purchase, transfer and top-up endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.api.routes.auth import get_current_principal
from fuelapp.core.security import Principal
from fuelapp.schemas import (
    FuelPurchaseRequest,
    TopUpRequest,
    TransactionCreate,
    TransactionRead,
    TransactionStatusUpdate,
    TransferRead,
    TransferRequest,
)
from fuelapp.services.errors import FuelServiceError
from fuelapp.services.transactions import TransactionService

router = APIRouter(prefix="/transactions")


@router.post("", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> TransactionRead:
    """Record a pending transaction; balances change only when it is completed."""

    fields = payload.model_dump(exclude={"transaction_type", "amount", "fuel_type"})
    try:
        transaction = TransactionService(session).record_pending(
            principal,
            transaction_type=payload.transaction_type,
            amount=payload.amount,
            fuel_type=payload.fuel_type,
            **fields,
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return TransactionRead.model_validate(transaction)


@router.get("/my", response_model=list[TransactionRead])
@router.get("/recent", response_model=list[TransactionRead], include_in_schema=False)
def my_transactions(
    limit: int | None = Query(default=None, ge=1, le=500),
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[TransactionRead]:
    transactions = TransactionService(session).list_for_user(principal.user_id, limit)
    return [TransactionRead.model_validate(transaction) for transaction in transactions]


@router.post("/fuel-purchase", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
def fuel_purchase(
    payload: FuelPurchaseRequest,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> TransactionRead:
    try:
        transaction = TransactionService(session).purchase(principal, **payload.model_dump())
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return TransactionRead.model_validate(transaction)


@router.post("/transfer", response_model=TransferRead, status_code=status.HTTP_201_CREATED)
def transfer_fuel(
    payload: TransferRequest,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> TransferRead:
    try:
        result = TransactionService(session).transfer(
            principal,
            recipient_email=payload.recipient_email,
            fuel_type=payload.fuel_type,
            amount=payload.amount,
            notes=payload.notes,
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return TransferRead(
        reference=result.outgoing.reference,
        outgoing=TransactionRead.model_validate(result.outgoing),
        incoming=TransactionRead.model_validate(result.incoming),
    )


@router.post("/top-up", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
def top_up(
    payload: TopUpRequest,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> TransactionRead:
    try:
        transaction = TransactionService(session).top_up(principal, **payload.model_dump())
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return TransactionRead.model_validate(transaction)


@router.get("/{transaction_id}", response_model=TransactionRead)
def get_transaction(
    transaction_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> TransactionRead:
    try:
        transaction = TransactionService(session).get_for(principal, transaction_id)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return TransactionRead.model_validate(transaction)


@router.patch("/{transaction_id}/status", response_model=TransactionRead)
def update_transaction_status(
    transaction_id: str,
    payload: TransactionStatusUpdate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> TransactionRead:
    """Complete, fail or cancel a pending transaction."""

    try:
        transaction = TransactionService(session).update_status(principal, transaction_id, payload.status)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return TransactionRead.model_validate(transaction)
