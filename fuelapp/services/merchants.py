"""Merchant stations, their employees and pending-balance withdrawals."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fuelapp.core.security import Principal, hash_secret
from fuelapp.db.session import unit_of_work
from fuelapp.models import (
    AdminPermission,
    AuditLog,
    EmployeeStatus,
    Merchant,
    MerchantEmployee,
    MerchantStatus,
    User,
    UserType,
    WithdrawalRequest,
    WithdrawalStatus,
)
from fuelapp.services.errors import (
    DomainConflictError,
    DuplicateRecordError,
    InsufficientBalanceError,
    InvalidStateTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from fuelapp.services.ledger import quantize

logger = logging.getLogger(__name__)

WITHDRAWAL_TRANSITIONS: dict[WithdrawalStatus, frozenset[WithdrawalStatus]] = {
    WithdrawalStatus.PENDING: frozenset({WithdrawalStatus.APPROVED, WithdrawalStatus.REJECTED}),
    WithdrawalStatus.APPROVED: frozenset({WithdrawalStatus.COMPLETED}),
    WithdrawalStatus.COMPLETED: frozenset(),
    WithdrawalStatus.REJECTED: frozenset(),
}


class MerchantService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def register(
        self,
        actor: Principal,
        *,
        station_name: str,
        address: str | None = None,
        contact_phone: str | None = None,
        bank_name: str | None = None,
        account_number: str | None = None,
        account_holder: str | None = None,
        branch_code: str | None = None,
    ) -> Merchant:
        """Register the caller as a merchant; the account becomes a merchant account."""

        if actor.is_admin:
            raise PermissionDeniedError("Administrators cannot register as merchants")
        if self._session.scalar(select(Merchant.id).where(Merchant.user_id == actor.user_id)) is not None:
            raise DuplicateRecordError("A merchant is already registered for this account")

        with unit_of_work(self._session):
            merchant = Merchant(
                user_id=actor.user_id,
                station_name=station_name,
                address=address,
                contact_phone=contact_phone,
                bank_name=bank_name,
                account_number=account_number,
                account_holder=account_holder,
                branch_code=branch_code,
                pending_balance=Decimal("0.00"),
                status=MerchantStatus.ACTIVE,
            )
            self._session.add(merchant)
            self._session.execute(
                update(User).where(User.id == actor.user_id).values(user_type=UserType.MERCHANT)
            )
        self._session.refresh(merchant)
        logger.info("merchant registered", extra={"merchant_id": merchant.id, "user_id": actor.user_id})
        return merchant

    def list_all(self, actor: Principal) -> list[Merchant]:
        if not actor.is_admin:
            raise PermissionDeniedError("Only administrators can list every merchant")
        return list(self._session.scalars(select(Merchant).order_by(Merchant.station_name)))

    def list_active(self) -> list[Merchant]:
        statement = (
            select(Merchant).where(Merchant.status == MerchantStatus.ACTIVE).order_by(Merchant.station_name)
        )
        return list(self._session.scalars(statement))

    def get_for_user(self, user_id: str) -> Merchant:
        merchant = self._session.scalar(select(Merchant).where(Merchant.user_id == user_id))
        if merchant is None:
            raise NotFoundError("No merchant is registered for this account")
        return merchant

    # -- employees -------------------------------------------------------------

    def add_employee(self, actor: Principal, *, name: str, employee_code: str, pin: str) -> MerchantEmployee:
        merchant = self.get_for_user(actor.user_id)
        with unit_of_work(self._session):
            employee = MerchantEmployee(
                merchant_id=merchant.id,
                name=name,
                employee_code=employee_code,
                hashed_pin=hash_secret(pin),
                status=EmployeeStatus.ACTIVE,
            )
            self._session.add(employee)
            try:
                self._session.flush()
            except IntegrityError as exc:
                raise DuplicateRecordError(f"Employee code '{employee_code}' is already in use") from exc
        self._session.refresh(employee)
        return employee

    def list_employees(self, actor: Principal) -> list[MerchantEmployee]:
        merchant = self.get_for_user(actor.user_id)
        statement = (
            select(MerchantEmployee)
            .where(MerchantEmployee.merchant_id == merchant.id)
            .order_by(MerchantEmployee.employee_code)
        )
        return list(self._session.scalars(statement))

    # -- withdrawals -----------------------------------------------------------

    def request_withdrawal(self, actor: Principal, amount: Decimal, notes: str | None = None) -> WithdrawalRequest:
        """Open a withdrawal that, together with other pending requests, fits the pending balance."""

        value = quantize(amount)
        if value <= 0:
            raise DomainConflictError("Withdrawal amount must be greater than zero")
        merchant = self.get_for_user(actor.user_id)
        if merchant.status != MerchantStatus.ACTIVE:
            raise DomainConflictError("Merchant is not active")

        with unit_of_work(self._session):
            # concurrent requests for one merchant queue on its row until commit
            merchant = self._session.scalars(
                select(Merchant)
                .where(Merchant.id == merchant.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).one()
            reserved = self._session.scalar(
                select(func.coalesce(func.sum(WithdrawalRequest.amount), 0)).where(
                    WithdrawalRequest.merchant_id == merchant.id,
                    WithdrawalRequest.status == WithdrawalStatus.PENDING,
                )
            )
            available = quantize(merchant.pending_balance) - quantize(reserved or 0)
            if value > available:
                raise InsufficientBalanceError(
                    f"Withdrawal of {value} exceeds the available pending balance of {available}"
                )
            request = WithdrawalRequest(
                merchant_id=merchant.id,
                amount=value,
                status=WithdrawalStatus.PENDING,
                notes=notes,
                requested_at=datetime.now(timezone.utc),
            )
            self._session.add(request)
        self._session.refresh(request)
        return request

    def list_withdrawals(self, actor: Principal, status: WithdrawalStatus | None = None) -> list[WithdrawalRequest]:
        """Administrators with ``manage_withdrawals`` see every request; merchants see their own."""

        statement = select(WithdrawalRequest).order_by(WithdrawalRequest.requested_at.desc())
        if not actor.has(AdminPermission.MANAGE_WITHDRAWALS):
            merchant = self.get_for_user(actor.user_id)
            statement = statement.where(WithdrawalRequest.merchant_id == merchant.id)
        if status is not None:
            statement = statement.where(WithdrawalRequest.status == status)
        return list(self._session.scalars(statement))

    def process_withdrawal(
        self,
        actor: Principal,
        request_id: str,
        status: WithdrawalStatus,
        notes: str | None = None,
    ) -> WithdrawalRequest:
        actor.ensure(AdminPermission.MANAGE_WITHDRAWALS)
        request = self._session.get(WithdrawalRequest, request_id)
        if request is None:
            raise NotFoundError(f"Withdrawal request '{request_id}' was not found")
        current = request.status
        if status not in WITHDRAWAL_TRANSITIONS[current]:
            raise InvalidStateTransitionError(f"Withdrawal cannot move from {current.value} to {status.value}")

        now = datetime.now(timezone.utc)
        with unit_of_work(self._session):
            moved = self._session.execute(
                update(WithdrawalRequest)
                .where(WithdrawalRequest.id == request_id, WithdrawalRequest.status == current)
                .values(status=status, processed_at=now, processed_by=actor.user_id, notes=notes or request.notes)
                .execution_options(synchronize_session=False)
            )
            if moved.rowcount != 1:
                raise InvalidStateTransitionError("Withdrawal request was processed concurrently")
            if status == WithdrawalStatus.APPROVED:
                self._release_funds(request.merchant_id, request.amount)
            self._session.add(
                AuditLog(
                    actor_id=actor.user_id,
                    action=f"withdrawal.{status.value}",
                    resource_type="withdrawal_request",
                    resource_id=request_id,
                    payload={"amount": str(request.amount), "merchant_id": request.merchant_id},
                )
            )

        self._session.refresh(request)
        logger.info(
            "withdrawal processed",
            extra={"withdrawal_id": request_id, "status": status.value, "actor_id": actor.user_id},
        )
        return request

    def _release_funds(self, merchant_id: str, amount: Decimal) -> None:
        value = quantize(amount)
        result = self._session.execute(
            update(Merchant)
            .where(Merchant.id == merchant_id, Merchant.pending_balance >= value)
            .values(pending_balance=Merchant.pending_balance - value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InsufficientBalanceError("Merchant pending balance no longer covers this withdrawal")


__all__ = ["MerchantService", "WITHDRAWAL_TRANSITIONS"]
