"""Coupon issuance and redemption."""
from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fuelapp.core.config import Settings, get_settings
from fuelapp.core.security import Principal
from fuelapp.db.session import unit_of_work
from fuelapp.models import (
    AdminPermission,
    Coupon,
    CouponStatus,
    FuelType,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from fuelapp.obs import COUPON_REDEMPTION_COUNTER, COUPONS_ISSUED_COUNTER, service_span
from fuelapp.services.errors import (
    CouponCodeGenerationError,
    CouponNotRedeemableError,
    DomainConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ReconciliationError,
)
from fuelapp.services.ledger import BalanceLedger, quantize

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
TOKEN_LENGTH = 6

COUPON_EXPIRED = "Coupon has expired"
COUPON_UNAVAILABLE = "Coupon not found or already used"


def random_token() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(TOKEN_LENGTH))


def format_code(fuel_type: FuelType, amount: Decimal, token: str) -> str:
    """Build ``FUEL-<PET|DSL>-<amount>L-<token>`` with trailing zeros dropped from the amount."""

    litres = format(quantize(amount).normalize(), "f")
    return f"FUEL-{fuel_type.code}-{litres}L-{token}"


def _as_utc(moment: datetime | None) -> datetime | None:
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class CouponService:
    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        token_factory: Callable[[], str] = random_token,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._token_factory = token_factory

    def generate_unique_code(self, fuel_type: FuelType, amount: Decimal) -> str:
        """Return a code not yet stored, trying at most ``coupon_code_max_attempts`` candidates."""

        attempts = self._settings.coupon_code_max_attempts
        for _ in range(attempts):
            candidate = format_code(fuel_type, amount, self._token_factory())
            taken = self._session.scalar(select(Coupon.id).where(Coupon.code == candidate))
            if taken is None:
                return candidate
        logger.error(
            "coupon code space exhausted",
            extra={"fuel_type": fuel_type.value, "amount": str(amount), "attempts": attempts},
        )
        raise CouponCodeGenerationError(f"Unable to generate a unique coupon code after {attempts} attempts")

    def create_coupon(
        self,
        actor: Principal,
        *,
        fuel_type: FuelType,
        amount: Decimal,
        description: str | None = None,
        expiry_date: datetime | None = None,
    ) -> Coupon:
        actor.ensure(AdminPermission.MANAGE_COUPONS)
        value = quantize(amount)
        if value <= 0:
            raise DomainConflictError("Coupon amount must be positive")

        with unit_of_work(self._session):
            coupon = Coupon(
                code=self.generate_unique_code(fuel_type, value),
                fuel_type=fuel_type,
                amount=value,
                status=CouponStatus.ACTIVE,
                description=description,
                expiry_date=_as_utc(expiry_date),
                created_by=actor.user_id,
            )
            self._session.add(coupon)
            try:
                self._session.flush()
            except IntegrityError as exc:
                raise CouponCodeGenerationError("Coupon code was claimed concurrently") from exc

        self._session.refresh(coupon)
        COUPONS_ISSUED_COUNTER.labels(fuel_type=fuel_type.value).inc()
        logger.info("coupon issued", extra={"coupon_id": coupon.id, "fuel_type": fuel_type.value})
        return coupon

    def redeem_coupon(self, actor: Principal, code: str) -> Coupon:
        """Mark the coupon used, credit the redeemer and record the redemption together.

        A coupon that lapsed while still active is moved to ``expired`` as a
        side effect of the failed attempt.
        """

        now = datetime.now(timezone.utc)
        with service_span("coupon.redeem", user_id=actor.user_id):
            with unit_of_work(self._session):
                coupon = self._claim(code, actor.user_id, now)
                if coupon is not None:
                    self._settle(coupon, actor.user_id, now)

            if coupon is None:
                with unit_of_work(self._session):
                    lapsed = self._expire_if_lapsed(code, now)
                outcome = "expired" if lapsed else "unavailable"
                COUPON_REDEMPTION_COUNTER.labels(fuel_type="unknown", outcome=outcome).inc()
                raise CouponNotRedeemableError(COUPON_EXPIRED if lapsed else COUPON_UNAVAILABLE)

        COUPON_REDEMPTION_COUNTER.labels(fuel_type=coupon.fuel_type.value, outcome="redeemed").inc()
        logger.info("coupon redeemed", extra={"coupon_id": coupon.id, "user_id": actor.user_id})
        return coupon

    def _claim(self, code: str, user_id: str, now: datetime) -> Coupon | None:
        result = self._session.execute(
            update(Coupon)
            .where(
                Coupon.code == code,
                Coupon.status == CouponStatus.ACTIVE,
                or_(Coupon.expiry_date.is_(None), Coupon.expiry_date > now),
            )
            .values(status=CouponStatus.USED, used_by=user_id, used_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        return self._session.scalars(
            select(Coupon).where(Coupon.code == code).execution_options(populate_existing=True)
        ).one()

    def _settle(self, coupon: Coupon, user_id: str, now: datetime) -> None:
        try:
            BalanceLedger(self._session).apply_delta(user_id, coupon.fuel_type, coupon.amount)
            self._session.add(
                Transaction(
                    user_id=user_id,
                    transaction_type=TransactionType.COUPON_REDEMPTION,
                    fuel_type=coupon.fuel_type,
                    amount=coupon.amount,
                    status=TransactionStatus.COMPLETED,
                    reference=coupon.code,
                    created_at=now,
                    completed_at=now,
                )
            )
            self._session.flush()
        except SQLAlchemyError as exc:
            logger.exception("coupon redemption rolled back", extra={"coupon_id": coupon.id})
            raise ReconciliationError("Coupon redemption could not be completed and was rolled back") from exc

    def _expire_if_lapsed(self, code: str, now: datetime) -> bool:
        result = self._session.execute(
            update(Coupon)
            .where(
                Coupon.code == code,
                Coupon.status == CouponStatus.ACTIVE,
                Coupon.expiry_date.is_not(None),
                Coupon.expiry_date <= now,
            )
            .values(status=CouponStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def deactivate(self, actor: Principal, coupon_id: str) -> Coupon:
        actor.ensure(AdminPermission.MANAGE_COUPONS)
        with unit_of_work(self._session):
            result = self._session.execute(
                update(Coupon)
                .where(Coupon.id == coupon_id, Coupon.status == CouponStatus.ACTIVE)
                .values(status=CouponStatus.DEACTIVATED)
                .execution_options(synchronize_session=False)
            )
            coupon = self._session.get(Coupon, coupon_id, populate_existing=True)
            if coupon is None:
                raise NotFoundError(f"Coupon '{coupon_id}' was not found")
            if result.rowcount != 1:
                raise InvalidStateTransitionError(f"Coupon is {coupon.status.value} and cannot be deactivated")
        return coupon

    def list_active(self, limit: int | None = None) -> list[Coupon]:
        now = datetime.now(timezone.utc)
        statement = (
            select(Coupon)
            .where(
                Coupon.status == CouponStatus.ACTIVE,
                or_(Coupon.expiry_date.is_(None), Coupon.expiry_date > now),
            )
            .order_by(Coupon.created_at.desc())
            .limit(limit or self._settings.coupon_list_limit)
        )
        return list(self._session.scalars(statement))

    def get_by_code(self, code: str) -> Coupon:
        coupon = self._session.scalar(select(Coupon).where(Coupon.code == code))
        if coupon is None:
            raise NotFoundError(f"Coupon '{code}' was not found")
        return coupon


__all__ = [
    "COUPON_EXPIRED",
    "COUPON_UNAVAILABLE",
    "CODE_ALPHABET",
    "CouponService",
    "format_code",
    "random_token",
]
