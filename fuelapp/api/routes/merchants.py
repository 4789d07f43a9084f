"""Merchant station and employee endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.api.routes.auth import get_current_principal, require_admin
from fuelapp.core.security import Principal
from fuelapp.schemas import EmployeeCreate, EmployeeRead, MerchantCreate, MerchantRead, TransactionRead
from fuelapp.services.errors import FuelServiceError
from fuelapp.services.merchants import MerchantService
from fuelapp.services.transactions import TransactionService

router = APIRouter(prefix="/merchants")


@router.post("", response_model=MerchantRead, status_code=status.HTTP_201_CREATED)
def register_merchant(
    payload: MerchantCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> MerchantRead:
    try:
        merchant = MerchantService(session).register(principal, **payload.model_dump())
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return MerchantRead.model_validate(merchant)


@router.get("", response_model=list[MerchantRead])
def list_merchants(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_admin),
) -> list[MerchantRead]:
    return [MerchantRead.model_validate(merchant) for merchant in MerchantService(session).list_all(principal)]


@router.get("/active", response_model=list[MerchantRead])
def list_active_merchants(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[MerchantRead]:
    return [MerchantRead.model_validate(merchant) for merchant in MerchantService(session).list_active()]


@router.get("/me", response_model=MerchantRead)
def my_merchant(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> MerchantRead:
    try:
        merchant = MerchantService(session).get_for_user(principal.user_id)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return MerchantRead.model_validate(merchant)


@router.post("/me/employees", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
def add_employee(
    payload: EmployeeCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> EmployeeRead:
    try:
        employee = MerchantService(session).add_employee(
            principal, name=payload.name, employee_code=payload.employee_code, pin=payload.pin
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return EmployeeRead.model_validate(employee)


@router.get("/me/employees", response_model=list[EmployeeRead])
def list_employees(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[EmployeeRead]:
    try:
        employees = MerchantService(session).list_employees(principal)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return [EmployeeRead.model_validate(employee) for employee in employees]


@router.get("/me/transactions", response_model=list[TransactionRead])
def merchant_transactions(
    limit: int | None = Query(default=None, ge=1, le=500),
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[TransactionRead]:
    try:
        merchant = MerchantService(session).get_for_user(principal.user_id)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    transactions = TransactionService(session).list_for_merchant(merchant.id, limit)
    return [TransactionRead.model_validate(transaction) for transaction in transactions]
