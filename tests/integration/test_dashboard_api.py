from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from fuelapp.core.security import Principal
from fuelapp.models import (
    DEFAULT_ROLE_PERMISSIONS,
    AdminRoleName,
    Transaction,
    TransactionStatus,
    TransactionType,
    UserType,
)
from fuelapp.services.stats import get_system_stats


def test_stats_reflect_activity(client, admin_headers, driver_headers) -> None:
    client.post("/api/coupons", json={"fuelType": "petrol", "amount": "10"}, headers=admin_headers)
    client.post(
        "/api/vehicles",
        json={"registrationNumber": "STAT-1", "vehicleType": "suv", "fuelType": "diesel"},
        headers=driver_headers,
    )
    client.post("/api/companies", json={"name": "Stats Fleet"}, headers=driver_headers)
    client.post(
        "/api/transactions/top-up",
        json={"fuelType": "petrol", "amount": "30", "monetaryValue": "50.00"},
        headers=driver_headers,
    )
    client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "10", "monetaryValue": "17.90"},
        headers=driver_headers,
    )

    response = client.get("/api/dashboard/stats", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {
        "totalUsers": 2,
        "corporateFleets": 1,
        "pendingVehicles": 1,
        "activeCoupons": 1,
        "totalRevenue": "67.90",
        "monthlyVolume": "10.00",
    }


def test_stats_require_view_reports(client, driver_headers, make_user, headers_for) -> None:
    assert client.get("/api/dashboard/stats", headers=driver_headers).status_code == 403

    moderator = make_user("mod@example.com", user_type=UserType.ADMIN, role=AdminRoleName.MODERATOR)
    assert client.get("/api/dashboard/stats", headers=headers_for(moderator)).status_code == 200


def test_pending_and_earlier_transactions_are_excluded(db_session: Session, admin_user, driver_user) -> None:
    now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
    db_session.add_all(
        [
            Transaction(
                user_id=driver_user.id,
                transaction_type=TransactionType.FUEL_USAGE,
                amount=Decimal("4"),
                monetary_value=Decimal("6"),
                status=TransactionStatus.COMPLETED,
                created_at=datetime(2026, 3, 2, tzinfo=timezone.utc),
            ),
            Transaction(
                user_id=driver_user.id,
                transaction_type=TransactionType.FUEL_PURCHASE,
                amount=Decimal("9"),
                monetary_value=Decimal("11"),
                status=TransactionStatus.PENDING,
                created_at=datetime(2026, 3, 3, tzinfo=timezone.utc),
            ),
            Transaction(
                user_id=driver_user.id,
                transaction_type=TransactionType.FUEL_PURCHASE,
                amount=Decimal("20"),
                monetary_value=Decimal("30"),
                status=TransactionStatus.COMPLETED,
                created_at=datetime(2026, 2, 27, tzinfo=timezone.utc),
            ),
        ]
    )
    db_session.commit()
    admin = Principal(
        user_id=admin_user.id,
        email=admin_user.email,
        user_type=UserType.ADMIN,
        permissions=DEFAULT_ROLE_PERMISSIONS[AdminRoleName.SUPER_ADMIN],
    )

    stats = get_system_stats(db_session, admin, now=now)

    assert stats.total_revenue == Decimal("6.00")
    assert stats.monthly_volume == Decimal("4.00")
