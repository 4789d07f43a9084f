"""Account profile and administrator user management endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.api.routes.auth import get_current_principal, require_permission
from fuelapp.core.security import Principal
from fuelapp.models import AdminPermission
from fuelapp.schemas import ProfileUpdate, UserRead, UserStatusUpdate
from fuelapp.services.errors import FuelServiceError
from fuelapp.services.users import UserService

router = APIRouter(prefix="/users")


@router.get("", response_model=list[UserRead])
def list_users(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.MANAGE_USERS)),
) -> list[UserRead]:
    users = UserService(session).list_users(principal)
    return [UserRead.model_validate(user) for user in users]


@router.patch("/me", response_model=UserRead)
def update_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> UserRead:
    user = UserService(session).update_profile(
        principal,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )
    return UserRead.model_validate(user)


@router.patch("/{user_id}/status", response_model=UserRead)
def set_user_status(
    user_id: str,
    payload: UserStatusUpdate,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.MANAGE_USERS)),
) -> UserRead:
    """Suspend or reactivate an account."""

    try:
        user = UserService(session).set_status(principal, user_id, payload.status)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return UserRead.model_validate(user)
