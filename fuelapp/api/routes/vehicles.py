"""Vehicle registration, approval and document endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.api.routes.auth import get_current_principal, require_permission
from fuelapp.core.security import Principal
from fuelapp.models import AdminPermission
from fuelapp.schemas import (
    VehicleCreate,
    VehicleDocumentCreate,
    VehicleDocumentRead,
    VehicleRead,
    VehicleRejectRequest,
)
from fuelapp.services.errors import FuelServiceError
from fuelapp.services.vehicles import VehicleService

router = APIRouter(prefix="/vehicles")


@router.post("", response_model=VehicleRead, status_code=status.HTTP_201_CREATED)
def register_vehicle(
    payload: VehicleCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> VehicleRead:
    """Register a vehicle for the caller; it starts out pending approval."""

    try:
        vehicle = VehicleService(session).register(
            principal,
            registration_number=payload.registration_number,
            vehicle_type=payload.vehicle_type,
            fuel_type=payload.fuel_type,
            make=payload.make,
            model=payload.model,
            year=payload.year,
            company_id=payload.company_id,
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return VehicleRead.model_validate(vehicle)


@router.get("/my", response_model=list[VehicleRead])
@router.get("/user", response_model=list[VehicleRead], include_in_schema=False)
def my_vehicles(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[VehicleRead]:
    return [VehicleRead.model_validate(vehicle) for vehicle in VehicleService(session).list_for_owner(principal.user_id)]


@router.get("/pending", response_model=list[VehicleRead])
def pending_vehicles(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.APPROVE_VEHICLES)),
) -> list[VehicleRead]:
    return [VehicleRead.model_validate(vehicle) for vehicle in VehicleService(session).list_pending(principal)]


@router.get("/{vehicle_id}", response_model=VehicleRead)
def get_vehicle(
    vehicle_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> VehicleRead:
    try:
        vehicle = VehicleService(session).get(principal, vehicle_id)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return VehicleRead.model_validate(vehicle)


@router.patch("/{vehicle_id}/approve", response_model=VehicleRead)
def approve_vehicle(
    vehicle_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.APPROVE_VEHICLES)),
) -> VehicleRead:
    try:
        vehicle = VehicleService(session).approve(principal, vehicle_id)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return VehicleRead.model_validate(vehicle)


@router.patch("/{vehicle_id}/reject", response_model=VehicleRead)
def reject_vehicle(
    vehicle_id: str,
    payload: VehicleRejectRequest,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.APPROVE_VEHICLES)),
) -> VehicleRead:
    try:
        vehicle = VehicleService(session).reject(principal, vehicle_id, payload.reason)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return VehicleRead.model_validate(vehicle)


@router.post("/{vehicle_id}/documents", response_model=VehicleDocumentRead, status_code=status.HTTP_201_CREATED)
def add_vehicle_document(
    vehicle_id: str,
    payload: VehicleDocumentCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> VehicleDocumentRead:
    """Attach document metadata; the file itself lives in external storage."""

    try:
        document = VehicleService(session).add_document(
            principal,
            vehicle_id,
            document_type=payload.document_type,
            file_name=payload.file_name,
            file_path=payload.file_path,
            file_size=payload.file_size,
            mime_type=payload.mime_type,
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return VehicleDocumentRead.model_validate(document)


@router.get("/{vehicle_id}/documents", response_model=list[VehicleDocumentRead])
def list_vehicle_documents(
    vehicle_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> list[VehicleDocumentRead]:
    try:
        documents = VehicleService(session).list_documents(principal, vehicle_id)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return [VehicleDocumentRead.model_validate(document) for document in documents]
