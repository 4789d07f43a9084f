from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from fuelapp.models import Merchant


def _top_up(client, headers, amount: str = "40", fuel_type: str = "petrol") -> dict:
    response = client.post(
        "/api/transactions/top-up",
        json={"fuelType": fuel_type, "amount": amount, "paymentMethod": "paynow_ecocash"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _balances(client, headers) -> dict[str, str]:
    return client.get("/api/fuel-balances", headers=headers).json()


def test_top_up_and_purchase_move_balance(client, driver_headers) -> None:
    top_up = _top_up(client, driver_headers)
    assert top_up["status"] == "completed"
    assert top_up["transactionType"] == "top_up"
    assert _balances(client, driver_headers)["petrol"] == "40.00"

    purchase = client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "15.5"},
        headers=driver_headers,
    )
    assert purchase.status_code == 201, purchase.text
    assert purchase.json()["amount"] == "15.50"
    assert _balances(client, driver_headers)["petrol"] == "24.50"

    history = client.get("/api/transactions/my", headers=driver_headers).json()
    assert {item["transactionType"] for item in history} == {"top_up", "fuel_purchase"}


def test_purchase_requires_balance(client, driver_headers) -> None:
    _top_up(client, driver_headers, amount="5")

    response = client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "6"},
        headers=driver_headers,
    )
    assert response.status_code == 400
    assert "Insufficient petrol balance" in response.json()["detail"]
    assert _balances(client, driver_headers)["petrol"] == "5.00"


def test_purchase_at_merchant_credits_pending_balance(
    client, driver_headers, make_user, headers_for, db_session: Session
) -> None:
    owner = headers_for(make_user("station@example.com"))
    merchant = client.post("/api/merchants", json={"stationName": "Main Street"}, headers=owner).json()
    _top_up(client, driver_headers)

    response = client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "10", "monetaryValue": "17.90", "merchantId": merchant["id"]},
        headers=driver_headers,
    )
    assert response.status_code == 201, response.text
    assert db_session.get(Merchant, merchant["id"]).pending_balance == Decimal("17.90")

    sales = client.get("/api/merchants/me/transactions", headers=owner).json()
    assert [item["id"] for item in sales] == [response.json()["id"]]


def test_daily_purchase_limit(client, admin_headers, driver_headers, driver_user) -> None:
    limits = client.put(
        f"/api/transaction-limits/{driver_user.id}",
        json={"dailyPurchaseLimit": "10", "monthlyPurchaseLimit": "100", "dailyTransferLimit": "5"},
        headers=admin_headers,
    )
    assert limits.status_code == 200, limits.text
    assert limits.json()["custom"] is True

    mine = client.get("/api/transaction-limits", headers=driver_headers).json()
    assert mine["dailyPurchaseLimit"] == "10.00"

    _top_up(client, driver_headers)
    first = client.post(
        "/api/transactions/fuel-purchase", json={"fuelType": "petrol", "amount": "8"}, headers=driver_headers
    )
    assert first.status_code == 201
    second = client.post(
        "/api/transactions/fuel-purchase", json={"fuelType": "petrol", "amount": "3"}, headers=driver_headers
    )
    assert second.status_code == 400
    assert "Daily purchase limit" in second.json()["detail"]


def test_default_limits(client, driver_headers) -> None:
    response = client.get("/api/transaction-limits", headers=driver_headers)
    assert response.status_code == 200
    assert response.json()["custom"] is False
    assert response.json()["dailyPurchaseLimit"] == "100.00"


def test_limit_updates_are_validated(client, admin_headers, driver_headers, driver_user) -> None:
    payload = {"dailyPurchaseLimit": "200", "monthlyPurchaseLimit": "100", "dailyTransferLimit": "5"}

    inverted = client.put(f"/api/transaction-limits/{driver_user.id}", json=payload, headers=admin_headers)
    assert inverted.status_code == 400

    forbidden = client.put(f"/api/transaction-limits/{driver_user.id}", json=payload, headers=driver_headers)
    assert forbidden.status_code == 403


def test_transfer_moves_fuel_between_users(client, driver_headers, driver_user, make_user, headers_for) -> None:
    recipient = make_user("friend@example.com")
    _top_up(client, driver_headers, amount="20", fuel_type="diesel")

    response = client.post(
        "/api/transactions/transfer",
        json={"recipientEmail": "Friend@Example.com", "fuelType": "diesel", "amount": "7.25"},
        headers=driver_headers,
    )
    assert response.status_code == 201, response.text
    body = response.json()

    assert body["reference"].startswith("TRF-")
    assert len(body["reference"]) == 16
    assert body["outgoing"]["userId"] == driver_user.id
    assert body["incoming"]["userId"] == recipient.id
    assert body["outgoing"]["recipientId"] == recipient.id
    assert body["outgoing"]["reference"] == body["incoming"]["reference"] == body["reference"]
    assert _balances(client, driver_headers)["diesel"] == "12.75"
    assert _balances(client, headers_for(recipient))["diesel"] == "7.25"


def test_transfer_rejections(client, driver_headers, make_user) -> None:
    make_user("friend@example.com")
    _top_up(client, driver_headers, amount="100")

    to_self = client.post(
        "/api/transactions/transfer",
        json={"recipientEmail": "driver@example.com", "fuelType": "petrol", "amount": "1"},
        headers=driver_headers,
    )
    assert to_self.status_code == 400

    unknown = client.post(
        "/api/transactions/transfer",
        json={"recipientEmail": "nobody@example.com", "fuelType": "petrol", "amount": "1"},
        headers=driver_headers,
    )
    assert unknown.status_code == 404
    assert unknown.json()["detail"] == "Recipient not found"

    over_limit = client.post(
        "/api/transactions/transfer",
        json={"recipientEmail": "friend@example.com", "fuelType": "petrol", "amount": "60"},
        headers=driver_headers,
    )
    assert over_limit.status_code == 400
    assert "Daily transfer limit" in over_limit.json()["detail"]

    no_fuel = client.post(
        "/api/transactions/transfer",
        json={"recipientEmail": "friend@example.com", "fuelType": "diesel", "amount": "1"},
        headers=driver_headers,
    )
    assert no_fuel.status_code == 400
    assert _balances(client, driver_headers) == {"petrol": "100.00", "diesel": "0.00"}


def test_pending_transaction_lifecycle(client, admin_headers, driver_headers) -> None:
    created = client.post(
        "/api/transactions",
        json={"transactionType": "top_up", "fuelType": "diesel", "amount": "5"},
        headers=driver_headers,
    )
    assert created.status_code == 201, created.text
    transaction = created.json()
    assert transaction["status"] == "pending"
    assert _balances(client, driver_headers)["diesel"] == "0.00"

    forbidden = client.patch(
        f"/api/transactions/{transaction['id']}/status", json={"status": "completed"}, headers=driver_headers
    )
    assert forbidden.status_code == 403

    completed = client.patch(
        f"/api/transactions/{transaction['id']}/status", json={"status": "completed"}, headers=admin_headers
    )
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"
    assert completed.json()["completedAt"] is not None
    assert completed.json()["lockVersion"] > transaction["lockVersion"]
    assert _balances(client, driver_headers)["diesel"] == "5.00"

    final = client.patch(
        f"/api/transactions/{transaction['id']}/status", json={"status": "cancelled"}, headers=admin_headers
    )
    assert final.status_code == 400


def test_owner_can_cancel_pending(client, driver_headers) -> None:
    created = client.post(
        "/api/transactions",
        json={"transactionType": "fuel_purchase", "fuelType": "petrol", "amount": "2"},
        headers=driver_headers,
    ).json()

    response = client.patch(
        f"/api/transactions/{created['id']}/status", json={"status": "cancelled"}, headers=driver_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


def test_transactions_are_private(client, driver_headers, make_user, headers_for, admin_headers) -> None:
    transaction = _top_up(client, driver_headers, amount="1")
    outsider = headers_for(make_user("outsider@example.com"))

    assert client.get(f"/api/transactions/{transaction['id']}", headers=outsider).status_code == 404
    assert client.get(f"/api/transactions/{transaction['id']}", headers=driver_headers).status_code == 200
    assert client.get(f"/api/transactions/{transaction['id']}", headers=admin_headers).status_code == 200


def _vehicle(client, headers, registration: str = "xyz-9876") -> dict:
    response = client.post(
        "/api/vehicles",
        json={"registrationNumber": registration, "vehicleType": "sedan", "fuelType": "petrol"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_purchase_against_own_vehicle(client, driver_headers) -> None:
    vehicle = _vehicle(client, driver_headers)
    _top_up(client, driver_headers)

    response = client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "5", "vehicleId": vehicle["id"]},
        headers=driver_headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["vehicleId"] == vehicle["id"]


def test_purchase_rejects_foreign_and_unknown_vehicles(client, driver_headers, make_user, headers_for) -> None:
    stranger_vehicle = _vehicle(client, headers_for(make_user("stranger@example.com")))
    _top_up(client, driver_headers)

    foreign = client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "5", "vehicleId": stranger_vehicle["id"]},
        headers=driver_headers,
    )
    assert foreign.status_code == 404

    unknown = client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "5", "vehicleId": "no-such-vehicle"},
        headers=driver_headers,
    )
    assert unknown.status_code == 404

    pending = client.post(
        "/api/transactions",
        json={"transactionType": "fuel_usage", "fuelType": "petrol", "amount": "1", "vehicleId": stranger_vehicle["id"]},
        headers=driver_headers,
    )
    assert pending.status_code == 404
    assert _balances(client, driver_headers)["petrol"] == "40.00"
    assert [item["transactionType"] for item in client.get("/api/transactions/my", headers=driver_headers).json()] == [
        "top_up"
    ]


def test_purchase_checks_employee_belongs_to_merchant(client, driver_headers, make_user, headers_for) -> None:
    owner = headers_for(make_user("station@example.com"))
    merchant = client.post("/api/merchants", json={"stationName": "Main Street"}, headers=owner).json()
    employee = client.post(
        "/api/merchants/me/employees",
        json={"name": "Tendai", "employeeCode": "EMP-01", "pin": "4321"},
        headers=owner,
    ).json()
    other_owner = headers_for(make_user("other.station@example.com"))
    other_merchant = client.post("/api/merchants", json={"stationName": "Side Street"}, headers=other_owner).json()
    _top_up(client, driver_headers)

    unknown = client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "2", "merchantId": merchant["id"], "employeeId": "nobody"},
        headers=driver_headers,
    )
    assert unknown.status_code == 404

    elsewhere = client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "2", "merchantId": other_merchant["id"], "employeeId": employee["id"]},
        headers=driver_headers,
    )
    assert elsewhere.status_code == 404

    served = client.post(
        "/api/transactions/fuel-purchase",
        json={"fuelType": "petrol", "amount": "2", "merchantId": merchant["id"], "employeeId": employee["id"]},
        headers=driver_headers,
    )
    assert served.status_code == 201, served.text
    assert served.json()["employeeId"] == employee["id"]


def test_pending_transaction_checks_merchant(client, driver_headers) -> None:
    response = client.post(
        "/api/transactions",
        json={"transactionType": "fuel_purchase", "fuelType": "petrol", "amount": "2", "merchantId": "no-such-merchant"},
        headers=driver_headers,
    )
    assert response.status_code == 404


def test_recent_lists_the_callers_history(client, driver_headers) -> None:
    transaction = _top_up(client, driver_headers, amount="3")

    recent = client.get("/api/transactions/recent", headers=driver_headers)
    assert recent.status_code == 200
    assert [item["id"] for item in recent.json()] == [transaction["id"]]
