"""Administrator role assignment endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session, http_error
from fuelapp.api.routes.auth import get_current_principal, require_permission
from fuelapp.core.security import Principal
from fuelapp.models import AdminPermission
from fuelapp.schemas import AdminRoleAssign, AdminRoleRead
from fuelapp.services.errors import FuelServiceError
from fuelapp.services.users import UserService

router = APIRouter(prefix="/admin")


@router.put("/roles/{user_id}", response_model=AdminRoleRead)
def assign_role(
    user_id: str,
    payload: AdminRoleAssign,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.MANAGE_ADMINS)),
) -> AdminRoleRead:
    """Grant an administrator role; omitted permissions fall back to the role defaults."""

    try:
        assignment = UserService(session).assign_admin_role(
            principal, user_id, payload.role, payload.permissions
        )
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return AdminRoleRead.model_validate(assignment)


@router.get("/roles/{user_id}", response_model=AdminRoleRead)
def get_role(
    user_id: str,
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(get_current_principal),
) -> AdminRoleRead:
    try:
        assignment = UserService(session).get_admin_role(principal, user_id)
    except FuelServiceError as exc:
        raise http_error(exc) from exc
    return AdminRoleRead.model_validate(assignment)
