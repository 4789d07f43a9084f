"""Schema for dashboard statistics."""
from __future__ import annotations

from fuelapp.schemas.base import ApiModel, Money


class SystemStatsRead(ApiModel):
    total_users: int
    corporate_fleets: int
    pending_vehicles: int
    active_coupons: int
    total_revenue: Money
    monthly_volume: Money


__all__ = ["SystemStatsRead"]
