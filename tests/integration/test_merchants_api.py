from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import event, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import ORMExecuteState, Session

from fuelapp.models import AuditLog, Merchant, User, UserType


@pytest.fixture()
def station(client, make_user, headers_for) -> tuple[dict, dict[str, str]]:
    headers = headers_for(make_user("station@example.com"))
    response = client.post(
        "/api/merchants",
        json={
            "stationName": "Harare Central",
            "address": "1 Samora Machel Ave",
            "bankName": "CBZ",
            "accountNumber": "0012345678",
            "accountHolder": "Central Fuels",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json(), headers


def _fund(db_session: Session, merchant_id: str, amount: str) -> None:
    merchant = db_session.get(Merchant, merchant_id)
    merchant.pending_balance = Decimal(amount)
    db_session.commit()


def test_registration_makes_account_a_merchant(client, station, db_session: Session) -> None:
    merchant, headers = station

    assert merchant["pendingBalance"] == "0.00"
    assert merchant["status"] == "active"
    assert "accountNumber" not in merchant
    assert db_session.get(User, merchant["userId"]).user_type == UserType.MERCHANT

    me = client.get("/api/merchants/me", headers=headers)
    assert me.json()["id"] == merchant["id"]

    duplicate = client.post("/api/merchants", json={"stationName": "Second"}, headers=headers)
    assert duplicate.status_code == 409


def test_listing(client, station, admin_headers, driver_headers) -> None:
    merchant, _ = station

    active = client.get("/api/merchants/active", headers=driver_headers)
    assert [item["id"] for item in active.json()] == [merchant["id"]]

    assert client.get("/api/merchants", headers=driver_headers).status_code == 403
    assert len(client.get("/api/merchants", headers=admin_headers).json()) == 1


def test_admins_cannot_register_and_non_merchants_have_no_station(client, admin_headers, driver_headers) -> None:
    assert client.post("/api/merchants", json={"stationName": "Nope"}, headers=admin_headers).status_code == 403
    assert client.get("/api/merchants/me", headers=driver_headers).status_code == 404


def test_employees(client, station) -> None:
    _, headers = station

    created = client.post(
        "/api/merchants/me/employees",
        json={"name": "Tendai", "employeeCode": "EMP-01", "pin": "4321"},
        headers=headers,
    )
    assert created.status_code == 201, created.text
    assert "pin" not in created.json()

    duplicate = client.post(
        "/api/merchants/me/employees",
        json={"name": "Other", "employeeCode": "EMP-01", "pin": "1111"},
        headers=headers,
    )
    assert duplicate.status_code == 409

    bad_pin = client.post(
        "/api/merchants/me/employees",
        json={"name": "Other", "employeeCode": "EMP-02", "pin": "12ab"},
        headers=headers,
    )
    assert bad_pin.status_code == 400

    listed = client.get("/api/merchants/me/employees", headers=headers).json()
    assert [item["employeeCode"] for item in listed] == ["EMP-01"]


def test_withdrawals_reserve_pending_balance(client, station, admin_headers, db_session: Session) -> None:
    merchant, headers = station
    _fund(db_session, merchant["id"], "15.00")

    first = client.post("/api/withdrawals", json={"amount": "10"}, headers=headers)
    assert first.status_code == 201, first.text
    assert first.json()["status"] == "pending"

    second = client.post("/api/withdrawals", json={"amount": "6"}, headers=headers)
    assert second.status_code == 400

    mine = client.get("/api/withdrawals", headers=headers).json()
    assert [item["id"] for item in mine] == [first.json()["id"]]

    pending = client.get("/api/withdrawals", params={"status": "pending"}, headers=admin_headers).json()
    assert [item["id"] for item in pending] == [first.json()["id"]]


def test_withdrawal_approval_releases_funds(
    client, station, admin_headers, admin_user, db_session: Session
) -> None:
    merchant, headers = station
    _fund(db_session, merchant["id"], "15.00")
    request = client.post("/api/withdrawals", json={"amount": "10", "notes": "Weekly"}, headers=headers).json()

    forbidden = client.patch(f"/api/withdrawals/{request['id']}", json={"status": "approved"}, headers=headers)
    assert forbidden.status_code == 403

    approved = client.patch(
        f"/api/withdrawals/{request['id']}", json={"status": "approved"}, headers=admin_headers
    )
    assert approved.status_code == 200, approved.text
    assert approved.json()["processedBy"] == admin_user.id
    assert approved.json()["notes"] == "Weekly"
    assert client.get("/api/merchants/me", headers=headers).json()["pendingBalance"] == "5.00"

    completed = client.patch(
        f"/api/withdrawals/{request['id']}", json={"status": "completed"}, headers=admin_headers
    )
    assert completed.status_code == 200

    reopened = client.patch(
        f"/api/withdrawals/{request['id']}", json={"status": "rejected"}, headers=admin_headers
    )
    assert reopened.status_code == 400

    actions = db_session.scalars(
        select(AuditLog.action).where(AuditLog.resource_id == request["id"]).order_by(AuditLog.created_at)
    ).all()
    assert set(actions) == {"withdrawal.approved", "withdrawal.completed"}


def test_rejected_withdrawal_keeps_balance(client, station, admin_headers, db_session: Session) -> None:
    merchant, headers = station
    _fund(db_session, merchant["id"], "8.00")
    request = client.post("/api/withdrawals", json={"amount": "8"}, headers=headers).json()

    rejected = client.patch(
        f"/api/withdrawals/{request['id']}", json={"status": "rejected", "notes": "Bank details"}, headers=admin_headers
    )
    assert rejected.status_code == 200
    assert client.get("/api/merchants/me", headers=headers).json()["pendingBalance"] == "8.00"

    retry = client.post("/api/withdrawals", json={"amount": "8"}, headers=headers)
    assert retry.status_code == 201


def test_withdrawal_request_locks_merchant_row(client, station, db_session: Session) -> None:
    merchant, headers = station
    _fund(db_session, merchant["id"], "15.00")
    locking_selects: list[str] = []

    def capture(state: ORMExecuteState) -> None:
        if state.is_select:
            sql = str(state.statement.compile(dialect=postgresql.dialect()))
            if "FOR UPDATE" in sql:
                locking_selects.append(sql)

    event.listen(db_session, "do_orm_execute", capture)
    try:
        response = client.post("/api/withdrawals", json={"amount": "10"}, headers=headers)
    finally:
        event.remove(db_session, "do_orm_execute", capture)

    assert response.status_code == 201, response.text
    assert len(locking_selects) == 1
    assert "FROM merchants" in locking_selects[0]
