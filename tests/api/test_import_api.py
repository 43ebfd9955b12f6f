"""
Tests for the raw transaction import endpoints.
"""

import uuid

import pytest

from ledger_engine.services.import_service import ImportService


@pytest.fixture
def bank(client):
    client.post("/accounts", json={
        "code": "1100", "name": "Bank", "accountType": "ASSET",
    })


def import_payload(*external_ids):
    return {
        "source": "bank-feed",
        "accountCode": "1100",
        "fileName": "feb.csv",
        "transactions": [
            {
                "externalId": external_id,
                "occurredAt": "2026-02-20T09:30:00Z",
                "description": "Card payment",
                "amount": "-42.10",
                "currencyCode": "USD",
                "metadata": {"row": i},
            }
            for i, external_id in enumerate(external_ids)
        ],
    }


def test_import_reports_counts(client, bank):
    response = client.post("/raw-transactions/import", json=import_payload("a", "b"))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["attemptedCount"] == 2
    assert data["insertedCount"] == 2
    assert data["duplicateCount"] == 0


def test_reimport_is_not_an_error(client, bank):
    client.post("/raw-transactions/import", json=import_payload("a", "b"))

    response = client.post(
        "/raw-transactions/import", json=import_payload("a", "b", "c")
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["insertedCount"] == 1
    assert data["duplicateCount"] == 2


def test_fetch_imported_row(client, bank, db_session):
    client.post("/raw-transactions/import", json=import_payload("a"))
    [raw] = ImportService(db_session).list_raw_transactions()

    response = client.get(f"/raw-transactions/{raw.id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["externalId"] == "a"
    assert data["amount"] == "-42.1000"
    assert data["allocatedAmount"] == "0.0000"
    assert data["reconciliationStatus"] == "UNRECONCILED"
    assert data["metadata"] == {"row": 0}


def test_unknown_account_code(client):
    response = client.post("/raw-transactions/import", json=import_payload("a"))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MISSING_ACCOUNT"


def test_unknown_raw_transaction(client):
    response = client.get(f"/raw-transactions/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "TRANSACTION_NOT_FOUND"
