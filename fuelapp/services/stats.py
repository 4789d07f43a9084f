"""Dashboard statistics."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from fuelapp.core.security import Principal
from fuelapp.models import (
    AdminPermission,
    Company,
    Coupon,
    CouponStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    Vehicle,
    VehicleStatus,
)
from fuelapp.services.ledger import quantize


@dataclass(frozen=True, slots=True)
class SystemStats:
    total_users: int
    corporate_fleets: int
    pending_vehicles: int
    active_coupons: int
    total_revenue: Decimal
    monthly_volume: Decimal


def get_system_stats(session: Session, actor: Principal, *, now: datetime | None = None) -> SystemStats:
    """Aggregate counts plus this calendar month's revenue and litre volume."""

    actor.ensure(AdminPermission.VIEW_REPORTS)
    moment = now or datetime.now(timezone.utc)
    month_start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    completed_this_month = (
        Transaction.status == TransactionStatus.COMPLETED,
        Transaction.created_at >= month_start,
    )

    revenue = session.scalar(
        select(func.coalesce(func.sum(Transaction.monetary_value), 0)).where(*completed_this_month)
    )
    volume = session.scalar(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            *completed_this_month,
            Transaction.transaction_type.in_([TransactionType.FUEL_PURCHASE, TransactionType.FUEL_USAGE]),
        )
    )
    active_coupons = session.scalar(
        select(func.count(Coupon.id)).where(
            Coupon.status == CouponStatus.ACTIVE,
            or_(Coupon.expiry_date.is_(None), Coupon.expiry_date > moment),
        )
    )

    return SystemStats(
        total_users=session.scalar(select(func.count(User.id))) or 0,
        corporate_fleets=session.scalar(select(func.count(Company.id))) or 0,
        pending_vehicles=session.scalar(
            select(func.count(Vehicle.id)).where(Vehicle.status == VehicleStatus.PENDING)
        )
        or 0,
        active_coupons=active_coupons or 0,
        total_revenue=quantize(revenue or 0),
        monthly_volume=quantize(volume or 0),
    )


__all__ = ["SystemStats", "get_system_stats"]
