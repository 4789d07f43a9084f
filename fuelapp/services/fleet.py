"""Corporate fleets: companies, their managers and drivers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fuelapp.core.security import Principal
from fuelapp.db.session import unit_of_work
from fuelapp.models import (
    Company,
    Driver,
    DriverStatus,
    FleetManager,
    FleetManagerRole,
    User,
    UserType,
    Vehicle,
)
from fuelapp.services.errors import DuplicateRecordError, NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Fleet:
    company: Company
    vehicles: list[Vehicle]
    drivers: list[Driver]


class FleetService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_company(
        self,
        actor: Principal,
        *,
        name: str,
        registration_number: str | None = None,
        address: str | None = None,
        contact_email: str | None = None,
        contact_phone: str | None = None,
    ) -> Company:
        """Create a company; a non-admin creator becomes its fleet admin."""

        with unit_of_work(self._session):
            company = Company(
                name=name,
                registration_number=registration_number,
                address=address,
                contact_email=contact_email,
                contact_phone=contact_phone,
            )
            self._session.add(company)
            self._session.flush()
            if not actor.is_admin:
                self._session.add(
                    FleetManager(user_id=actor.user_id, company_id=company.id, role=FleetManagerRole.ADMIN)
                )
                creator = self._session.get(User, actor.user_id)
                if creator is not None and creator.user_type == UserType.INDIVIDUAL:
                    creator.user_type = UserType.CORPORATE
        self._session.refresh(company)
        logger.info("company created", extra={"company_id": company.id, "actor_id": actor.user_id})
        return company

    def list_companies(self, actor: Principal) -> list[Company]:
        statement = select(Company).order_by(Company.name)
        if not actor.is_admin:
            statement = statement.join(FleetManager, FleetManager.company_id == Company.id).where(
                FleetManager.user_id == actor.user_id
            )
        return list(self._session.scalars(statement))

    def add_manager(
        self,
        actor: Principal,
        company_id: str,
        *,
        email: str,
        role: FleetManagerRole = FleetManagerRole.MANAGER,
    ) -> FleetManager:
        company = self._company_for(actor, company_id, require_admin_role=True)
        user = self._user_by_email(email)
        with unit_of_work(self._session):
            manager = FleetManager(user_id=user.id, company_id=company.id, role=role)
            self._session.add(manager)
            try:
                self._session.flush()
            except IntegrityError as exc:
                raise DuplicateRecordError(f"'{email}' already manages this company") from exc
        self._session.refresh(manager)
        return manager

    def add_driver(
        self,
        actor: Principal,
        company_id: str,
        *,
        email: str,
        license_number: str | None = None,
        license_expiry: datetime | None = None,
    ) -> Driver:
        company = self._company_for(actor, company_id)
        user = self._user_by_email(email)
        existing = self._session.scalar(
            select(Driver.id).where(Driver.user_id == user.id, Driver.company_id == company.id)
        )
        if existing is not None:
            raise DuplicateRecordError(f"'{email}' is already a driver for this company")
        with unit_of_work(self._session):
            driver = Driver(
                user_id=user.id,
                company_id=company.id,
                license_number=license_number,
                license_expiry=license_expiry,
                status=DriverStatus.ACTIVE,
            )
            self._session.add(driver)
        self._session.refresh(driver)
        return driver

    def get_fleet(self, actor: Principal, company_id: str) -> Fleet:
        company = self._company_for(actor, company_id)
        vehicles = self._session.scalars(
            select(Vehicle).where(Vehicle.company_id == company.id).order_by(Vehicle.registration_number)
        )
        drivers = self._session.scalars(
            select(Driver).where(Driver.company_id == company.id).order_by(Driver.created_at)
        )
        return Fleet(company=company, vehicles=list(vehicles), drivers=list(drivers))

    def _company_for(self, actor: Principal, company_id: str, *, require_admin_role: bool = False) -> Company:
        company = self._session.get(Company, company_id)
        if company is None:
            raise NotFoundError(f"Company '{company_id}' was not found")
        if actor.is_admin:
            return company
        membership = self._session.scalar(
            select(FleetManager).where(FleetManager.user_id == actor.user_id, FleetManager.company_id == company_id)
        )
        if membership is None:
            raise PermissionDeniedError("Only fleet managers of this company can manage its fleet")
        if require_admin_role and membership.role != FleetManagerRole.ADMIN:
            raise PermissionDeniedError("Only fleet admins can add managers")
        return company

    def _user_by_email(self, email: str) -> User:
        user = self._session.scalar(select(User).where(User.email == email.lower()))
        if user is None:
            raise NotFoundError(f"User '{email}' was not found")
        return user


__all__ = ["Fleet", "FleetService"]
