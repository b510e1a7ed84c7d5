from __future__ import annotations

import pytest


def test_healthcheck(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


ENTITY_PAYLOADS = {
    "clients": {
        "name": "Acme Ltd",
        "phone": "03-5555555",
        "email": "office@acme.example",
        "address": "1 Herzl St",
        "companyId": "514000000",
        "type": "business",
    },
    "suppliers": {"name": "Paper Co", "phone": "04-1111111", "companyId": "512345678"},
    "categories": {"name": "Office", "description": "Office supplies"},
    "incomes": {
        "receiptNumber": 1001,
        "date": "2024-01-10T00:00:00",
        "client": "client-id",
        "amount": 100.0,
        "vat": 17.0,
        "paymentMethod": "check",
        "details": "January retainer",
        "paymentDetails": {"checkNumber": "000123", "bankNumber": "12"},
    },
    "expenses": {
        "referenceNumber": 501,
        "date": "2024-02-01T00:00:00",
        "supplier": "supplier-id",
        "category": "category-id",
        "amount": 80.5,
        "vat": 13.7,
        "paymentMethod": "bank_transfer",
        "referenceDoc": "INV-77",
    },
    "receipts": {
        "date": "2024-01-01T00:00:00",
        "amount": 500.0,
        "clientName": "John Doe",
        "description": "Service payment",
    },
    "users": {"username": "dana", "password": "password123", "businessType": "זעיר", "email": "dana@example.com"},
}

LABELS = {
    "clients": "Client",
    "suppliers": "Supplier",
    "categories": "Category",
    "incomes": "Income",
    "expenses": "Expense",
    "receipts": "Receipt",
    "users": "User",
}


@pytest.mark.parametrize("collection", sorted(ENTITY_PAYLOADS))
def test_create_then_fetch_returns_submitted_fields(client, collection):
    payload = ENTITY_PAYLOADS[collection]
    created = client.post(f"/api/{collection}", json=payload)
    assert created.status_code == 201, created.text
    record_id = created.json()["id"]

    fetched = client.get(f"/api/{collection}/{record_id}")
    assert fetched.status_code == 200
    body = fetched.json()
    for key, value in payload.items():
        if key == "paymentDetails":
            assert {k: body[key][k] for k in value} == value
        else:
            assert body[key] == value

    listed = client.get(f"/api/{collection}")
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [record_id]


@pytest.mark.parametrize("collection", sorted(ENTITY_PAYLOADS))
def test_delete_missing_record_is_not_found(client, collection):
    response = client.delete(f"/api/{collection}/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"detail": f"{LABELS[collection]} not found"}


@pytest.mark.parametrize("collection", sorted(ENTITY_PAYLOADS))
def test_get_and_update_missing_record_is_not_found(client, collection):
    assert client.get(f"/api/{collection}/0123456789abcdef").status_code == 404
    response = client.put(f"/api/{collection}/0123456789abcdef", json={})
    assert response.status_code == 404


@pytest.mark.parametrize("collection", sorted(ENTITY_PAYLOADS))
def test_delete_returns_confirmation(client, collection):
    record_id = client.post(f"/api/{collection}", json=ENTITY_PAYLOADS[collection]).json()["id"]
    response = client.delete(f"/api/{collection}/{record_id}")
    assert response.status_code == 200
    assert response.json() == {"message": f"{LABELS[collection]} deleted"}
    assert client.get(f"/api/{collection}/{record_id}").status_code == 404


@pytest.mark.parametrize(
    ("collection", "field"),
    [
        ("categories", "name"),
        ("incomes", "receiptNumber"),
        ("expenses", "referenceNumber"),
        ("users", "username"),
    ],
)
def test_unique_fields_reject_second_record(client, collection, field):
    payload = ENTITY_PAYLOADS[collection]
    first = client.post(f"/api/{collection}", json=payload)
    assert first.status_code == 201

    second = client.post(f"/api/{collection}", json=payload)
    assert second.status_code == 409
    assert second.json()["detail"]

    assert client.get(f"/api/{collection}/{first.json()['id']}").status_code == 200


def test_duplicate_category_message(client):
    client.post("/api/categories", json={"name": "Food"})
    response = client.post("/api/categories", json={"name": "Food"})
    assert response.status_code == 409
    assert response.json() == {"detail": "Category already exists"}


@pytest.mark.parametrize(
    ("collection", "payload"),
    [
        ("clients", {"phone": "050"}),
        ("clients", {"name": "Acme", "type": "government"}),
        ("receipts", {"date": "2024-01-01", "amount": 300}),
        ("users", {"username": "dana", "password": "pw", "businessType": "invalid_type"}),
        ("incomes", {**ENTITY_PAYLOADS["incomes"], "paymentMethod": "bitcoin"}),
    ],
)
def test_invalid_payloads_are_client_errors(client, collection, payload):
    response = client.post(f"/api/{collection}", json=payload)
    assert response.status_code == 422
    assert response.json()["detail"]
    assert client.get(f"/api/{collection}").json() == []


def test_receipt_without_client_name_names_the_field(client):
    response = client.post("/api/receipts", json={"date": "2024-01-01", "amount": 300})
    assert response.status_code == 422
    locations = [error["loc"] for error in response.json()["detail"]]
    assert ["body", "clientName"] in locations


def test_partial_update_keeps_other_fields(client):
    created = client.post("/api/suppliers", json={"name": "Paper Co", "phone": "04-1111111"}).json()
    response = client.put(f"/api/suppliers/{created['id']}", json={"email": "sales@paper.example"})
    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "sales@paper.example"
    assert body["phone"] == "04-1111111"
    assert body["name"] == "Paper Co"


def test_update_clearing_required_field_is_rejected(client):
    created = client.post("/api/receipts", json=ENTITY_PAYLOADS["receipts"]).json()
    response = client.put(f"/api/receipts/{created['id']}", json={"clientName": None})
    assert response.status_code == 400
    assert response.json() == {"detail": "Receipt clientName is required"}


def test_update_to_taken_username_is_conflict(client):
    client.post("/api/users", json=ENTITY_PAYLOADS["users"])
    other = client.post(
        "/api/users",
        json={"username": "noa", "password": "pw", "businessType": "פטור"},
    ).json()
    response = client.put(f"/api/users/{other['id']}", json={"username": "dana"})
    assert response.status_code == 409


def test_income_read_populates_client(client):
    acme = client.post("/api/clients", json={"name": "Acme"}).json()
    income = client.post("/api/incomes", json={**ENTITY_PAYLOADS["incomes"], "client": acme["id"]}).json()
    # Creation echoes the stored identifier.
    assert income["client"] == acme["id"]

    fetched = client.get(f"/api/incomes/{income['id']}").json()
    assert fetched["client"]["id"] == acme["id"]
    assert fetched["client"]["name"] == "Acme"

    listed = client.get("/api/incomes").json()
    assert listed[0]["client"]["name"] == "Acme"


def test_expense_read_populates_supplier_and_category(client):
    supplier = client.post("/api/suppliers", json={"name": "Paper Co"}).json()
    category = client.post("/api/categories", json={"name": "Office"}).json()
    payload = {**ENTITY_PAYLOADS["expenses"], "supplier": supplier["id"], "category": category["id"]}
    expense = client.post("/api/expenses", json=payload).json()

    fetched = client.get(f"/api/expenses/{expense['id']}").json()
    assert fetched["supplier"]["name"] == "Paper Co"
    assert fetched["category"]["name"] == "Office"


def test_snake_case_input_is_accepted(client):
    response = client.post(
        "/api/receipts",
        json={"date": "2024-01-01", "amount": 10, "client_name": "Jane Smith"},
    )
    assert response.status_code == 201
    assert response.json()["clientName"] == "Jane Smith"
