from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from fuelapp.models import AdminRoleName, AuditLog, UserType

VEHICLE = {"registrationNumber": "abc-1234", "vehicleType": "sedan", "fuelType": "petrol", "make": "Toyota"}


def _register(client, headers, **overrides) -> dict:
    response = client.post("/api/vehicles", json={**VEHICLE, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_registration_starts_pending(client, driver_headers, driver_user) -> None:
    vehicle = _register(client, driver_headers)

    assert vehicle["status"] == "pending"
    assert vehicle["registrationNumber"] == "ABC-1234"
    assert vehicle["ownerId"] == driver_user.id

    mine = client.get("/api/vehicles/my", headers=driver_headers)
    assert [item["id"] for item in mine.json()] == [vehicle["id"]]
    assert client.get("/api/vehicles/user", headers=driver_headers).json() == mine.json()


def test_duplicate_registration_conflicts(client, driver_headers, make_user, headers_for) -> None:
    _register(client, driver_headers)

    other = headers_for(make_user("other@example.com"))
    response = client.post(
        "/api/vehicles", json={**VEHICLE, "registrationNumber": " ABC-1234"}, headers=other
    )
    assert response.status_code == 409


def test_approval_records_decision_and_audit(client, admin_headers, admin_user, driver_headers, db_session: Session) -> None:
    vehicle = _register(client, driver_headers)

    pending = client.get("/api/vehicles/pending", headers=admin_headers)
    assert [item["id"] for item in pending.json()] == [vehicle["id"]]

    approved = client.patch(f"/api/vehicles/{vehicle['id']}/approve", headers=admin_headers)
    assert approved.status_code == 200
    body = approved.json()
    assert body["status"] == "approved"
    assert body["approvedBy"] == admin_user.id
    assert body["approvedAt"] is not None

    audit = db_session.scalars(select(AuditLog).where(AuditLog.resource_id == vehicle["id"])).one()
    assert audit.action == "vehicle.approved"
    assert audit.actor_id == admin_user.id

    assert client.get("/api/vehicles/pending", headers=admin_headers).json() == []


def test_second_decision_is_rejected(client, admin_headers, driver_headers) -> None:
    vehicle = _register(client, driver_headers)
    assert client.patch(f"/api/vehicles/{vehicle['id']}/approve", headers=admin_headers).status_code == 200

    again = client.patch(f"/api/vehicles/{vehicle['id']}/approve", headers=admin_headers)
    assert again.status_code == 400
    reject = client.patch(f"/api/vehicles/{vehicle['id']}/reject", json={"reason": "late"}, headers=admin_headers)
    assert reject.status_code == 400


def test_rejection_keeps_reason(client, admin_headers, driver_headers) -> None:
    vehicle = _register(client, driver_headers)

    response = client.patch(
        f"/api/vehicles/{vehicle['id']}/reject",
        json={"reason": "Registration book unreadable"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["rejectionReason"] == "Registration book unreadable"


def test_moderators_can_decide_but_drivers_cannot(client, driver_headers, make_user, headers_for) -> None:
    vehicle = _register(client, driver_headers)

    forbidden = client.patch(f"/api/vehicles/{vehicle['id']}/approve", headers=driver_headers)
    assert forbidden.status_code == 403

    moderator = make_user("mod@example.com", user_type=UserType.ADMIN, role=AdminRoleName.MODERATOR)
    allowed = client.patch(f"/api/vehicles/{vehicle['id']}/approve", headers=headers_for(moderator))
    assert allowed.status_code == 200


def test_unknown_vehicle(client, admin_headers) -> None:
    response = client.patch("/api/vehicles/missing/approve", headers=admin_headers)
    assert response.status_code == 404


def test_vehicles_are_private_to_owner(client, driver_headers, make_user, headers_for) -> None:
    vehicle = _register(client, driver_headers)
    outsider = headers_for(make_user("outsider@example.com"))

    assert client.get(f"/api/vehicles/{vehicle['id']}", headers=driver_headers).status_code == 200
    assert client.get(f"/api/vehicles/{vehicle['id']}", headers=outsider).status_code == 404


def test_documents(client, driver_headers) -> None:
    vehicle = _register(client, driver_headers)

    created = client.post(
        f"/api/vehicles/{vehicle['id']}/documents",
        json={
            "documentType": "registration_book",
            "fileName": "book.pdf",
            "filePath": "vehicles/abc-1234/book.pdf",
            "fileSize": 2048,
            "mimeType": "application/pdf",
        },
        headers=driver_headers,
    )
    assert created.status_code == 201, created.text

    listed = client.get(f"/api/vehicles/{vehicle['id']}/documents", headers=driver_headers)
    assert [item["fileName"] for item in listed.json()] == ["book.pdf"]
