from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from fuelapp.models import AuditLog, UserType


def test_profile_update(client, driver_headers) -> None:
    response = client.patch(
        "/api/users/me",
        json={"firstName": "Rudo", "lastName": "Moyo", "phone": "+263771234567"},
        headers=driver_headers,
    )
    assert response.status_code == 200
    assert response.json()["firstName"] == "Rudo"

    current = client.get("/api/auth/user", headers=driver_headers).json()
    assert current["lastName"] == "Moyo"
    assert current["permissions"] == []


def test_user_listing_requires_manage_users(client, admin_headers, driver_headers) -> None:
    assert client.get("/api/users", headers=driver_headers).status_code == 403

    emails = [item["email"] for item in client.get("/api/users", headers=admin_headers).json()]
    assert sorted(emails) == ["admin@example.com", "driver@example.com"]


def test_suspension_blocks_access(client, admin_headers, admin_user, driver_headers, driver_user, db_session: Session) -> None:
    suspended = client.patch(
        f"/api/users/{driver_user.id}/status", json={"status": "suspended"}, headers=admin_headers
    )
    assert suspended.status_code == 200
    assert suspended.json()["status"] == "suspended"

    blocked = client.get("/api/fuel-balances", headers=driver_headers)
    assert blocked.status_code == 403
    assert blocked.json()["detail"] == "Account is suspended"

    login = client.post("/api/auth/login", json={"email": "driver@example.com", "password": "correct-horse"})
    assert login.status_code == 403

    audit = db_session.scalars(select(AuditLog).where(AuditLog.resource_id == driver_user.id)).one()
    assert audit.action == "user.suspended"
    assert audit.actor_id == admin_user.id

    restored = client.patch(f"/api/users/{driver_user.id}/status", json={"status": "active"}, headers=admin_headers)
    assert restored.status_code == 200
    assert client.get("/api/fuel-balances", headers=driver_headers).status_code == 200


def test_admins_cannot_suspend_themselves(client, admin_headers, admin_user) -> None:
    response = client.patch(f"/api/users/{admin_user.id}/status", json={"status": "suspended"}, headers=admin_headers)
    assert response.status_code == 400


def test_assign_admin_role(client, admin_headers, driver_headers, driver_user) -> None:
    assigned = client.put(
        f"/api/admin/roles/{driver_user.id}",
        json={"role": "moderator"},
        headers=admin_headers,
    )
    assert assigned.status_code == 200, assigned.text
    assert sorted(assigned.json()["permissions"]) == ["approve_vehicles", "view_reports"]

    current = client.get("/api/auth/user", headers=driver_headers).json()
    assert current["userType"] == UserType.ADMIN.value
    assert current["permissions"] == ["approve_vehicles", "view_reports"]

    own = client.get(f"/api/admin/roles/{driver_user.id}", headers=driver_headers)
    assert own.status_code == 200
    assert own.json()["role"] == "moderator"


def test_custom_permissions_and_guards(client, admin_headers, admin_user, driver_headers, driver_user) -> None:
    custom = client.put(
        f"/api/admin/roles/{driver_user.id}",
        json={"role": "admin", "permissions": ["manage_coupons"]},
        headers=admin_headers,
    )
    assert custom.json()["permissions"] == ["manage_coupons"]

    assert client.get("/api/vehicles/pending", headers=driver_headers).status_code == 403
    assert client.get("/api/coupons/active", headers=driver_headers).status_code == 200
    assert client.get(f"/api/admin/roles/{admin_user.id}", headers=driver_headers).status_code == 403
    assert client.put(
        f"/api/admin/roles/{admin_user.id}", json={"role": "moderator"}, headers=driver_headers
    ).status_code == 403


def test_role_lookup_for_non_admin(client, admin_headers, driver_user) -> None:
    assert client.get(f"/api/admin/roles/{driver_user.id}", headers=admin_headers).status_code == 404
    assert client.put("/api/admin/roles/missing", json={"role": "admin"}, headers=admin_headers).status_code == 404
