"""Merchant withdrawal request endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.api.routes.auth import get_current_principal, require_permission
from fuelapp.core.security import Principal
from fuelapp.models import AdminPermission, WithdrawalStatus
from fuelapp.schemas import WithdrawalCreate, WithdrawalProcess, WithdrawalRead
from fuelapp.services.errors import FuelServiceError
from fuelapp.services.merchants import MerchantService

router = APIRouter(prefix="/withdrawals")


@router.post("", response_model=WithdrawalRead, status_code=status.HTTP_201_CREATED)
def request_withdrawal(
    payload: WithdrawalCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> WithdrawalRead:
    """Ask for part of the merchant's pending balance to be paid out."""

    try:
        request = MerchantService(session).request_withdrawal(principal, payload.amount, payload.notes)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return WithdrawalRead.model_validate(request)


@router.get("", response_model=list[WithdrawalRead])
def list_withdrawals(
    status_filter: WithdrawalStatus | None = Query(default=None, alias="status"),
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[WithdrawalRead]:
    try:
        requests = MerchantService(session).list_withdrawals(principal, status_filter)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return [WithdrawalRead.model_validate(request) for request in requests]


@router.patch("/{request_id}", response_model=WithdrawalRead)
def process_withdrawal(
    request_id: str,
    payload: WithdrawalProcess,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.MANAGE_WITHDRAWALS)),
) -> WithdrawalRead:
    try:
        request = MerchantService(session).process_withdrawal(
            principal, request_id, payload.status, payload.notes
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return WithdrawalRead.model_validate(request)
