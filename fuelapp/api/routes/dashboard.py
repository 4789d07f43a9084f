"""Administrator dashboard endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fuelapp.api.deps import get_db_session
from fuelapp.api.routes.auth import require_permission
from fuelapp.core.security import Principal
from fuelapp.models import AdminPermission
from fuelapp.schemas import SystemStatsRead
from fuelapp.services.stats import get_system_stats

router = APIRouter(prefix="/dashboard")


@router.get("/stats", response_model=SystemStatsRead, summary="System-wide statistics")
def dashboard_stats(
    session: Session = Depends(get_db_session),
    principal: Principal = Depends(require_permission(AdminPermission.VIEW_REPORTS)),
) -> SystemStatsRead:
    return SystemStatsRead.model_validate(get_system_stats(session, principal))
