"""Coupon issuance and redemption endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.api.routes.auth import get_current_principal, require_permission
from fuelapp.core.security import Principal
from fuelapp.models import AdminPermission
from fuelapp.schemas import CouponCreate, CouponRead, CouponRedeemRequest
from fuelapp.services.coupons import CouponService
from fuelapp.services.errors import FuelServiceError

router = APIRouter(prefix="/coupons")


@router.post("", response_model=CouponRead, status_code=status.HTTP_201_CREATED)
def create_coupon(
    payload: CouponCreate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.MANAGE_COUPONS)),
) -> CouponRead:
    """Issue a single-use coupon with a freshly generated code."""

    try:
        coupon = CouponService(session).create_coupon(
            principal,
            fuel_type=payload.fuel_type,
            amount=payload.amount,
            description=payload.description,
            expiry_date=payload.expiry_date,
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return CouponRead.model_validate(coupon)


@router.get("/active", response_model=list[CouponRead])
def list_active_coupons(
    limit: int | None = Query(default=None, ge=1, le=500),
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.MANAGE_COUPONS)),
) -> list[CouponRead]:
    coupons = CouponService(session).list_active(limit)
    return [CouponRead.model_validate(coupon) for coupon in coupons]


@router.post("/redeem", response_model=CouponRead)
def redeem_coupon(
    payload: CouponRedeemRequest,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> CouponRead:
    """Redeem a code and credit its fuel to the caller's balance."""

    try:
        coupon = CouponService(session).redeem_coupon(principal, payload.code.strip().upper())
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return CouponRead.model_validate(coupon)


@router.patch("/{coupon_id}/deactivate", response_model=CouponRead)
def deactivate_coupon(
    coupon_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.MANAGE_COUPONS)),
) -> CouponRead:
    try:
        coupon = CouponService(session).deactivate(principal, coupon_id)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return CouponRead.model_validate(coupon)
