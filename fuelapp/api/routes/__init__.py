"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from fuelapp.api.routes import (
    admin,
    auth,
    balances,
    companies,
    coupons,
    dashboard,
    health,
    merchants,
    transactions,
    users,
    vehicles,
    withdrawals,
)


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(users.router, tags=["users"])
    api_router.include_router(admin.router, tags=["admin"])
    api_router.include_router(balances.router, tags=["balances"])
    api_router.include_router(coupons.router, tags=["coupons"])
    api_router.include_router(vehicles.router, tags=["vehicles"])
    api_router.include_router(transactions.router, tags=["transactions"])
    api_router.include_router(merchants.router, tags=["merchants"])
    api_router.include_router(withdrawals.router, tags=["withdrawals"])
    api_router.include_router(companies.router, tags=["companies"])
    api_router.include_router(dashboard.router, tags=["dashboard"])

    application.include_router(api_router)


__all__ = ["register_routes"]
