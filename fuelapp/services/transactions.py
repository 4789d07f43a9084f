"""Transaction recording, settlement and per-user limits."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from fuelapp.core.config import Settings, get_settings
from fuelapp.core.security import Principal
from fuelapp.db.session import unit_of_work
from fuelapp.models import (
    AdminPermission,
    EmployeeStatus,
    FuelType,
    Merchant,
    MerchantEmployee,
    MerchantStatus,
    PaymentMethod,
    Transaction,
    TransactionLimit,
    TransactionStatus,
    TransactionType,
    User,
    UserStatus,
)
from fuelapp.obs import TRANSACTION_COUNTER
from fuelapp.services.errors import (
    ConcurrentUpdateError,
    DomainConflictError,
    InvalidStateTransitionError,
    LimitExceededError,
    NotFoundError,
)
from fuelapp.services.ledger import BalanceLedger, quantize
from fuelapp.services.vehicles import VehicleService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset(
        {TransactionStatus.COMPLETED, TransactionStatus.FAILED, TransactionStatus.CANCELLED}
    ),
    TransactionStatus.COMPLETED: frozenset(),
    TransactionStatus.FAILED: frozenset(),
    TransactionStatus.CANCELLED: frozenset(),
}


def ensure_transition(current: TransactionStatus, target: TransactionStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStateTransitionError(
            f"Transaction cannot move from {current.value} to {target.value}"
        )


@dataclass(frozen=True, slots=True)
class EffectiveLimits:
    """Litre limits for one user; ``custom`` is false when configured defaults apply."""

    user_id: str
    daily_purchase_limit: Decimal
    monthly_purchase_limit: Decimal
    daily_transfer_limit: Decimal
    custom: bool = False


@dataclass(frozen=True, slots=True)
class TransferResult:
    outgoing: Transaction
    incoming: Transaction


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _start_of_month(moment: datetime) -> datetime:
    return _start_of_day(moment).replace(day=1)


class TransactionService:
    def __init__(self, session: Session, *, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._ledger = BalanceLedger(session)

    # -- recording -------------------------------------------------------------

    def record(
        self,
        *,
        user_id: str,
        transaction_type: TransactionType,
        amount: Decimal,
        fuel_type: FuelType | None = None,
        status: TransactionStatus = TransactionStatus.PENDING,
        monetary_value: Decimal | None = None,
        vehicle_id: str | None = None,
        merchant_id: str | None = None,
        employee_id: str | None = None,
        recipient_id: str | None = None,
        payment_method: PaymentMethod | None = None,
        reference: str | None = None,
        notes: str | None = None,
    ) -> Transaction:
        """Add a transaction row to the open unit of work and flush it."""

        now = datetime.now(timezone.utc)
        transaction = Transaction(
            user_id=user_id,
            transaction_type=transaction_type,
            fuel_type=fuel_type,
            amount=quantize(amount),
            monetary_value=quantize(monetary_value) if monetary_value is not None else None,
            status=status,
            vehicle_id=vehicle_id,
            merchant_id=merchant_id,
            employee_id=employee_id,
            recipient_id=recipient_id,
            payment_method=payment_method,
            reference=reference,
            notes=notes,
            created_at=now,
            completed_at=now if status == TransactionStatus.COMPLETED else None,
        )
        self._session.add(transaction)
        self._session.flush()
        TRANSACTION_COUNTER.labels(transaction_type=transaction_type.value, status=status.value).inc()
        return transaction

    def record_pending(
        self,
        actor: Principal,
        *,
        transaction_type: TransactionType,
        amount: Decimal,
        fuel_type: FuelType | None = None,
        **fields: object,
    ) -> Transaction:
        _require_positive(amount)
        with unit_of_work(self._session):
            self._check_references(
                actor,
                vehicle_id=fields.get("vehicle_id"),
                merchant_id=fields.get("merchant_id"),
                employee_id=fields.get("employee_id"),
            )
            transaction = self.record(
                user_id=actor.user_id,
                transaction_type=transaction_type,
                amount=amount,
                fuel_type=fuel_type,
                **fields,
            )
        self._session.refresh(transaction)
        return transaction

    def purchase(
        self,
        actor: Principal,
        *,
        fuel_type: FuelType,
        amount: Decimal,
        monetary_value: Decimal | None = None,
        merchant_id: str | None = None,
        vehicle_id: str | None = None,
        employee_id: str | None = None,
        payment_method: PaymentMethod | None = None,
        reference: str | None = None,
        notes: str | None = None,
    ) -> Transaction:
        """Record a completed fuel purchase and settle it against balance and merchant."""

        value = _require_positive(amount)
        with unit_of_work(self._session):
            self._check_references(
                actor, vehicle_id=vehicle_id, merchant_id=merchant_id, employee_id=employee_id
            )
            self._check_purchase_limits(actor.user_id, value)
            transaction = self.record(
                user_id=actor.user_id,
                transaction_type=TransactionType.FUEL_PURCHASE,
                fuel_type=fuel_type,
                amount=value,
                monetary_value=monetary_value,
                status=TransactionStatus.COMPLETED,
                merchant_id=merchant_id,
                vehicle_id=vehicle_id,
                employee_id=employee_id,
                payment_method=payment_method,
                reference=reference,
                notes=notes,
            )
            self._settle(transaction)
        self._session.refresh(transaction)
        logger.info("fuel purchase recorded", extra={"transaction_id": transaction.id, "user_id": actor.user_id})
        return transaction

    def top_up(
        self,
        actor: Principal,
        *,
        fuel_type: FuelType,
        amount: Decimal,
        monetary_value: Decimal | None = None,
        payment_method: PaymentMethod | None = None,
        reference: str | None = None,
    ) -> Transaction:
        value = _require_positive(amount)
        with unit_of_work(self._session):
            transaction = self.record(
                user_id=actor.user_id,
                transaction_type=TransactionType.TOP_UP,
                fuel_type=fuel_type,
                amount=value,
                monetary_value=monetary_value,
                status=TransactionStatus.COMPLETED,
                payment_method=payment_method,
                reference=reference,
            )
            self._settle(transaction)
        self._session.refresh(transaction)
        return transaction

    def transfer(
        self,
        actor: Principal,
        *,
        recipient_email: str,
        fuel_type: FuelType,
        amount: Decimal,
        notes: str | None = None,
    ) -> TransferResult:
        """Move fuel between two users; both sides share one ``TRF-`` reference."""

        value = _require_positive(amount)
        recipient = self._session.scalar(select(User).where(func.lower(User.email) == recipient_email.lower()))
        if recipient is None or recipient.status != UserStatus.ACTIVE:
            raise NotFoundError("Recipient not found")
        if recipient.id == actor.user_id:
            raise DomainConflictError("Cannot transfer fuel to yourself")

        reference = f"TRF-{uuid.uuid4().hex[:12].upper()}"
        with unit_of_work(self._session):
            limits = self.get_limits(actor.user_id)
            sent_today = self._transferred_since(actor.user_id, _start_of_day(datetime.now(timezone.utc)))
            if sent_today + value > limits.daily_transfer_limit:
                raise LimitExceededError(
                    f"Daily transfer limit of {limits.daily_transfer_limit} litres would be exceeded"
                )
            self._ledger.debit(actor.user_id, fuel_type, value)
            self._ledger.apply_delta(recipient.id, fuel_type, value)
            common = dict(
                transaction_type=TransactionType.FUEL_TRANSFER,
                fuel_type=fuel_type,
                amount=value,
                status=TransactionStatus.COMPLETED,
                recipient_id=recipient.id,
                reference=reference,
                notes=notes,
            )
            outgoing = self.record(user_id=actor.user_id, **common)
            incoming = self.record(user_id=recipient.id, **common)
        self._session.refresh(outgoing)
        self._session.refresh(incoming)
        logger.info(
            "fuel transferred",
            extra={"reference": reference, "sender_id": actor.user_id, "recipient_id": recipient.id},
        )
        return TransferResult(outgoing=outgoing, incoming=incoming)

    # -- status changes --------------------------------------------------------

    def update_status(
        self, actor: Principal, transaction_id: str, new_status: TransactionStatus
    ) -> Transaction:
        """Move a pending transaction to a final status.

        Completion applies the settlement for the transaction type in the same
        unit of work. Owners may cancel their own pending transactions; every
        other change needs ``manage_transactions``.
        """

        transaction = self.get(transaction_id)
        owner_cancelling = transaction.user_id == actor.user_id and new_status == TransactionStatus.CANCELLED
        if not owner_cancelling:
            actor.ensure(AdminPermission.MANAGE_TRANSACTIONS)

        try:
            with unit_of_work(self._session):
                ensure_transition(transaction.status, new_status)
                transaction.status = new_status
                if new_status == TransactionStatus.COMPLETED:
                    transaction.completed_at = datetime.now(timezone.utc)
                    self._session.flush()
                    self._settle(transaction)
                self._session.flush()
        except StaleDataError as exc:
            raise ConcurrentUpdateError("Transaction was modified concurrently; reload and retry") from exc

        self._session.refresh(transaction)
        TRANSACTION_COUNTER.labels(
            transaction_type=transaction.transaction_type.value, status=new_status.value
        ).inc()
        return transaction

    def _settle(self, transaction: Transaction) -> None:
        if transaction.fuel_type is None:
            return
        if transaction.transaction_type == TransactionType.TOP_UP:
            self._ledger.apply_delta(transaction.user_id, transaction.fuel_type, transaction.amount)
        elif transaction.transaction_type == TransactionType.FUEL_PURCHASE:
            self._ledger.debit(transaction.user_id, transaction.fuel_type, transaction.amount)
            if transaction.merchant_id and transaction.monetary_value:
                self._session.execute(
                    update(Merchant)
                    .where(Merchant.id == transaction.merchant_id)
                    .values(pending_balance=Merchant.pending_balance + quantize(transaction.monetary_value))
                    .execution_options(synchronize_session=False)
                )

    # -- queries ---------------------------------------------------------------

    def get(self, transaction_id: str) -> Transaction:
        transaction = self._session.get(Transaction, transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction '{transaction_id}' was not found")
        return transaction

    def get_for(self, actor: Principal, transaction_id: str) -> Transaction:
        transaction = self.get(transaction_id)
        if transaction.user_id != actor.user_id and not actor.has(AdminPermission.MANAGE_TRANSACTIONS):
            raise NotFoundError(f"Transaction '{transaction_id}' was not found")
        return transaction

    def list_for_user(self, user_id: str, limit: int | None = None) -> list[Transaction]:
        statement = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc())
            .limit(limit or self._settings.transaction_list_limit)
        )
        return list(self._session.scalars(statement))

    def list_for_merchant(self, merchant_id: str, limit: int | None = None) -> list[Transaction]:
        statement = (
            select(Transaction)
            .where(Transaction.merchant_id == merchant_id)
            .order_by(Transaction.created_at.desc())
            .limit(limit or self._settings.transaction_list_limit)
        )
        return list(self._session.scalars(statement))

    # -- limits ----------------------------------------------------------------

    def get_limits(self, user_id: str) -> EffectiveLimits:
        row = self._session.scalar(select(TransactionLimit).where(TransactionLimit.user_id == user_id))
        if row is None:
            return EffectiveLimits(
                user_id=user_id,
                daily_purchase_limit=quantize(self._settings.default_daily_purchase_limit),
                monthly_purchase_limit=quantize(self._settings.default_monthly_purchase_limit),
                daily_transfer_limit=quantize(self._settings.default_daily_transfer_limit),
            )
        return EffectiveLimits(
            user_id=user_id,
            daily_purchase_limit=quantize(row.daily_purchase_limit),
            monthly_purchase_limit=quantize(row.monthly_purchase_limit),
            daily_transfer_limit=quantize(row.daily_transfer_limit),
            custom=True,
        )

    def set_limits(
        self,
        actor: Principal,
        user_id: str,
        *,
        daily_purchase_limit: Decimal,
        monthly_purchase_limit: Decimal,
        daily_transfer_limit: Decimal,
    ) -> EffectiveLimits:
        actor.ensure(AdminPermission.MANAGE_USERS)
        if self._session.get(User, user_id) is None:
            raise NotFoundError(f"User '{user_id}' was not found")
        if daily_purchase_limit > monthly_purchase_limit:
            raise DomainConflictError("Daily purchase limit cannot exceed the monthly purchase limit")

        with unit_of_work(self._session):
            row = self._session.scalar(select(TransactionLimit).where(TransactionLimit.user_id == user_id))
            if row is None:
                row = TransactionLimit(user_id=user_id)
                self._session.add(row)
            row.daily_purchase_limit = quantize(daily_purchase_limit)
            row.monthly_purchase_limit = quantize(monthly_purchase_limit)
            row.daily_transfer_limit = quantize(daily_transfer_limit)
        return self.get_limits(user_id)

    def _check_purchase_limits(self, user_id: str, amount: Decimal) -> None:
        limits = self.get_limits(user_id)
        now = datetime.now(timezone.utc)
        if self._purchased_since(user_id, _start_of_day(now)) + amount > limits.daily_purchase_limit:
            raise LimitExceededError(
                f"Daily purchase limit of {limits.daily_purchase_limit} litres would be exceeded"
            )
        if self._purchased_since(user_id, _start_of_month(now)) + amount > limits.monthly_purchase_limit:
            raise LimitExceededError(
                f"Monthly purchase limit of {limits.monthly_purchase_limit} litres would be exceeded"
            )

    def _purchased_since(self, user_id: str, since: datetime) -> Decimal:
        total = self._session.scalar(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.user_id == user_id,
                Transaction.transaction_type == TransactionType.FUEL_PURCHASE,
                Transaction.status == TransactionStatus.COMPLETED,
                Transaction.created_at >= since,
            )
        )
        return quantize(total or 0)

    def _transferred_since(self, user_id: str, since: datetime) -> Decimal:
        total = self._session.scalar(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.user_id == user_id,
                Transaction.transaction_type == TransactionType.FUEL_TRANSFER,
                Transaction.status == TransactionStatus.COMPLETED,
                or_(Transaction.recipient_id.is_(None), Transaction.recipient_id != user_id),
                Transaction.created_at >= since,
            )
        )
        return quantize(total or 0)

    def _check_references(
        self,
        actor: Principal,
        *,
        vehicle_id: str | None,
        merchant_id: str | None,
        employee_id: str | None,
    ) -> None:
        """Vehicles must be visible to the actor and employees must work for the merchant."""

        if vehicle_id is not None:
            VehicleService(self._session).get(actor, vehicle_id)
        if merchant_id is not None:
            self._active_merchant(merchant_id)
        if employee_id is not None:
            employee = self._session.get(MerchantEmployee, employee_id)
            if employee is None or merchant_id is None or employee.merchant_id != merchant_id:
                raise NotFoundError(f"Employee '{employee_id}' was not found")
            if employee.status != EmployeeStatus.ACTIVE:
                raise DomainConflictError("Employee is not active")

    def _active_merchant(self, merchant_id: str) -> Merchant:
        merchant = self._session.get(Merchant, merchant_id)
        if merchant is None:
            raise NotFoundError(f"Merchant '{merchant_id}' was not found")
        if merchant.status != MerchantStatus.ACTIVE:
            raise DomainConflictError("Merchant is not accepting purchases")
        return merchant


def _require_positive(amount: Decimal) -> Decimal:
    value = quantize(amount)
    if value <= 0:
        raise DomainConflictError("Amount must be greater than zero")
    return value


__all__ = [
    "ALLOWED_TRANSITIONS",
    "EffectiveLimits",
    "TransactionService",
    "TransferResult",
    "ensure_transition",
]
