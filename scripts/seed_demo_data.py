"""Seed script for a super administrator, a demo merchant and starter balances."""
from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from fuelapp.core.config import get_settings
from fuelapp.db.session import SessionLocal, engine
from fuelapp.models import (
    DEFAULT_ROLE_PERMISSIONS,
    AdminRole,
    AdminRoleName,
    Base,
    FuelType,
    Merchant,
    MerchantStatus,
    User,
    UserStatus,
    UserType,
)
from fuelapp.services.ledger import BalanceLedger

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_USERS = (
    ("admin@demo.local", UserType.ADMIN),
    ("station@demo.local", UserType.MERCHANT),
    ("driver@demo.local", UserType.INDIVIDUAL),
)
STARTER_BALANCE = {FuelType.PETROL: Decimal("40.00"), FuelType.DIESEL: Decimal("20.00")}


def _ensure_user(session: Session, email: str, user_type: UserType) -> User:
    user = session.scalar(select(User).where(User.email == email))
    if user is not None:
        logger.info("User %s already exists", email)
        return user
    user = User(
        email=email,
        user_type=user_type,
        status=UserStatus.ACTIVE,
        hashed_password=get_settings().default_user_hashed_password,
    )
    session.add(user)
    session.flush()
    BalanceLedger(session).initialize(user.id)
    logger.info("Added %s user %s", user_type.value, email)
    return user


def seed(session: Session) -> None:
    """Seed demo accounts; every account uses the default password."""

    users = {email: _ensure_user(session, email, user_type) for email, user_type in DEMO_USERS}

    admin = users["admin@demo.local"]
    if session.scalar(select(AdminRole).where(AdminRole.user_id == admin.id)) is None:
        permissions = DEFAULT_ROLE_PERMISSIONS[AdminRoleName.SUPER_ADMIN]
        session.add(
            AdminRole(
                user_id=admin.id,
                role=AdminRoleName.SUPER_ADMIN,
                permissions=sorted(permission.value for permission in permissions),
            )
        )
        logger.info("Granted super_admin to %s", admin.email)

    station = users["station@demo.local"]
    if session.scalar(select(Merchant).where(Merchant.user_id == station.id)) is None:
        session.add(
            Merchant(
                user_id=station.id,
                station_name="Demo Service Station",
                address="1 Samora Machel Ave",
                status=MerchantStatus.ACTIVE,
                pending_balance=Decimal("0.00"),
            )
        )
        logger.info("Registered demo merchant for %s", station.email)

    driver = users["driver@demo.local"]
    ledger = BalanceLedger(session)
    for fuel_type, amount in STARTER_BALANCE.items():
        if ledger.get_balance(driver.id, fuel_type) == 0:
            ledger.apply_delta(driver.id, fuel_type, amount)
            logger.info("Credited %s %s to %s", amount, fuel_type.value, driver.email)


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed(session)
        session.commit()


if __name__ == "__main__":
    main()
