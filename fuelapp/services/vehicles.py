"""Vehicle registration and the administrator approval workflow."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fuelapp.core.security import Principal
from fuelapp.db.session import unit_of_work
from fuelapp.models import (
    AdminPermission,
    AuditLog,
    DocumentType,
    FleetManager,
    Vehicle,
    VehicleDocument,
    VehicleFuelType,
    VehicleStatus,
    VehicleType,
)
from fuelapp.obs import VEHICLE_DECISION_COUNTER
from fuelapp.services.errors import (
    DuplicateRecordError,
    InvalidStateTransitionError,
    NotFoundError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)


def normalize_registration(value: str) -> str:
    return " ".join(value.split()).upper()


class VehicleService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def register(
        self,
        actor: Principal,
        *,
        registration_number: str,
        vehicle_type: VehicleType,
        fuel_type: VehicleFuelType,
        make: str | None = None,
        model: str | None = None,
        year: int | None = None,
        company_id: str | None = None,
    ) -> Vehicle:
        """Register a vehicle in ``pending`` status owned by the caller."""

        registration = normalize_registration(registration_number)
        if company_id is not None:
            self._ensure_fleet_access(actor, company_id)

        with unit_of_work(self._session):
            existing = self._session.scalar(
                select(Vehicle.id).where(func.upper(Vehicle.registration_number) == registration)
            )
            if existing is not None:
                raise DuplicateRecordError(f"Vehicle with registration '{registration}' already exists")
            vehicle = Vehicle(
                registration_number=registration,
                owner_id=actor.user_id,
                company_id=company_id,
                vehicle_type=vehicle_type,
                fuel_type=fuel_type,
                make=make,
                model=model,
                year=year,
                status=VehicleStatus.PENDING,
            )
            self._session.add(vehicle)
            try:
                self._session.flush()
            except IntegrityError as exc:
                raise DuplicateRecordError(f"Vehicle with registration '{registration}' already exists") from exc

        self._session.refresh(vehicle)
        logger.info("vehicle registered", extra={"vehicle_id": vehicle.id, "owner_id": actor.user_id})
        return vehicle

    def approve(self, actor: Principal, vehicle_id: str) -> Vehicle:
        return self._decide(actor, vehicle_id, VehicleStatus.APPROVED, reason=None)

    def reject(self, actor: Principal, vehicle_id: str, reason: str | None) -> Vehicle:
        return self._decide(actor, vehicle_id, VehicleStatus.REJECTED, reason=reason)

    def _decide(
        self, actor: Principal, vehicle_id: str, decision: VehicleStatus, *, reason: str | None
    ) -> Vehicle:
        """Apply an approval decision to a pending vehicle and audit it in the same commit.

        The status guard lives in the UPDATE itself, so of two concurrent
        decisions only one can match the pending row.
        """

        actor.ensure(AdminPermission.APPROVE_VEHICLES)
        now = datetime.now(timezone.utc)
        values: dict[str, object] = {"status": decision, "approved_by": actor.user_id, "updated_at": now}
        if decision == VehicleStatus.APPROVED:
            values["approved_at"] = now
        else:
            values["rejection_reason"] = reason

        with unit_of_work(self._session):
            result = self._session.execute(
                update(Vehicle)
                .where(Vehicle.id == vehicle_id, Vehicle.status == VehicleStatus.PENDING)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            vehicle = self._session.get(Vehicle, vehicle_id, populate_existing=True)
            if vehicle is None:
                raise NotFoundError(f"Vehicle '{vehicle_id}' was not found")
            if result.rowcount != 1:
                raise InvalidStateTransitionError(
                    f"Vehicle is {vehicle.status.value}; only pending vehicles can be {decision.value}"
                )
            self._session.add(
                AuditLog(
                    actor_id=actor.user_id,
                    action=f"vehicle.{decision.value}",
                    resource_type="vehicle",
                    resource_id=vehicle_id,
                    payload={"registration_number": vehicle.registration_number, "reason": reason},
                )
            )

        VEHICLE_DECISION_COUNTER.labels(decision=decision.value).inc()
        logger.info(
            "vehicle decision recorded",
            extra={"vehicle_id": vehicle_id, "decision": decision.value, "actor_id": actor.user_id},
        )
        return vehicle

    def get(self, actor: Principal, vehicle_id: str) -> Vehicle:
        vehicle = self._session.get(Vehicle, vehicle_id)
        if vehicle is None or not self._can_view(actor, vehicle):
            raise NotFoundError(f"Vehicle '{vehicle_id}' was not found")
        return vehicle

    def list_pending(self, actor: Principal) -> list[Vehicle]:
        actor.ensure(AdminPermission.APPROVE_VEHICLES)
        statement = (
            select(Vehicle).where(Vehicle.status == VehicleStatus.PENDING).order_by(Vehicle.created_at)
        )
        return list(self._session.scalars(statement))

    def list_for_owner(self, owner_id: str) -> list[Vehicle]:
        statement = select(Vehicle).where(Vehicle.owner_id == owner_id).order_by(Vehicle.created_at.desc())
        return list(self._session.scalars(statement))

    def list_for_company(self, actor: Principal, company_id: str) -> list[Vehicle]:
        self._ensure_fleet_access(actor, company_id)
        statement = select(Vehicle).where(Vehicle.company_id == company_id).order_by(Vehicle.registration_number)
        return list(self._session.scalars(statement))

    def add_document(
        self,
        actor: Principal,
        vehicle_id: str,
        *,
        document_type: DocumentType,
        file_name: str,
        file_path: str,
        file_size: int | None = None,
        mime_type: str | None = None,
    ) -> VehicleDocument:
        vehicle = self.get(actor, vehicle_id)
        if vehicle.owner_id != actor.user_id and not actor.is_admin:
            raise PermissionDeniedError("Only the vehicle owner can attach documents")
        with unit_of_work(self._session):
            document = VehicleDocument(
                vehicle_id=vehicle.id,
                document_type=document_type,
                file_name=file_name,
                file_path=file_path,
                file_size=file_size,
                mime_type=mime_type,
            )
            self._session.add(document)
        self._session.refresh(document)
        return document

    def list_documents(self, actor: Principal, vehicle_id: str) -> list[VehicleDocument]:
        vehicle = self.get(actor, vehicle_id)
        statement = (
            select(VehicleDocument)
            .where(VehicleDocument.vehicle_id == vehicle.id)
            .order_by(VehicleDocument.uploaded_at)
        )
        return list(self._session.scalars(statement))

    def _can_view(self, actor: Principal, vehicle: Vehicle) -> bool:
        if vehicle.owner_id == actor.user_id or actor.is_admin:
            return True
        return vehicle.company_id is not None and self._manages(actor.user_id, vehicle.company_id)

    def _manages(self, user_id: str, company_id: str) -> bool:
        found = self._session.scalar(
            select(FleetManager.id).where(FleetManager.user_id == user_id, FleetManager.company_id == company_id)
        )
        return found is not None

    def _ensure_fleet_access(self, actor: Principal, company_id: str) -> None:
        if actor.is_admin or self._manages(actor.user_id, company_id):
            return
        raise PermissionDeniedError("Only fleet managers of this company can manage its vehicles")


__all__ = ["VehicleService", "normalize_registration"]
