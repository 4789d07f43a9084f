"""Corporate fleet endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.api.routes.auth import get_current_principal
from fuelapp.core.security import Principal
from fuelapp.schemas import (
    CompanyCreate,
    CompanyRead,
    DriverCreate,
    DriverRead,
    FleetManagerRead,
    FleetRead,
    ManagerCreate,
)
from fuelapp.services.errors import FuelServiceError
from fuelapp.services.fleet import FleetService

router = APIRouter(prefix="/companies")


@router.post("", response_model=CompanyRead, status_code=status.HTTP_201_CREATED)
def create_company(
    payload: CompanyCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> CompanyRead:
    company = FleetService(session).create_company(principal, **payload.model_dump())
    return CompanyRead.model_validate(company)


@router.get("", response_model=list[CompanyRead])
def list_companies(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[CompanyRead]:
    """Admins see every company, fleet managers the ones they manage."""

    return [CompanyRead.model_validate(company) for company in FleetService(session).list_companies(principal)]


@router.post("/{company_id}/managers", response_model=FleetManagerRead, status_code=status.HTTP_201_CREATED)
def add_manager(
    company_id: str,
    payload: ManagerCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> FleetManagerRead:
    try:
        manager = FleetService(session).add_manager(principal, company_id, email=payload.email, role=payload.role)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return FleetManagerRead.model_validate(manager)


@router.post("/{company_id}/drivers", response_model=DriverRead, status_code=status.HTTP_201_CREATED)
def add_driver(
    company_id: str,
    payload: DriverCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> DriverRead:
    try:
        driver = FleetService(session).add_driver(
            principal,
            company_id,
            email=payload.email,
            license_number=payload.license_number,
            license_expiry=payload.license_expiry,
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return DriverRead.model_validate(driver)


@router.get("/{company_id}/fleet", response_model=FleetRead)
def get_fleet(
    company_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> FleetRead:
    try:
        fleet = FleetService(session).get_fleet(principal, company_id)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return FleetRead.model_validate(fleet)
