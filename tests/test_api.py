import pytest
from fastapi.testclient import TestClient

from app.main import app
from xlsx_helpers import row_by_id

pytestmark = pytest.mark.usefixtures("test_db")


@pytest.fixture
def client():
    # no context manager: the lifespan would bind the database from the environment
    return TestClient(app)


def _create_client(client, **payload):
    data = {"customer_name": "Asha Traders", "phone_number": "9000000001"}
    data.update(payload)
    response = client.post("/api/clients/", json=data)
    assert response.status_code == 201, response.text
    return response.json()


def test_ping_and_status(client):
    assert client.get("/ping").json() == {"message": "pong"}
    assert client.get("/api/status").json() == {"status": "ok"}


def test_create_and_read_client(client, app_context):
    created = _create_client(client, bank_support=True, monthly_turnover=150000)

    response = client.get(f"/api/clients/{created['id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["customer_name"] == "Asha Traders"
    assert body["status"] == "New"
    assert body["bank_support"] is True
    latest = app_context.backup_service.get_latest_backup()
    assert row_by_id(latest, "Clients", created["id"])["Bank Support"] == "Yes"
    assert [c["id"] for c in client.get("/api/clients/").json()] == [created["id"]]


def test_duplicate_phone_conflict(client):
    created = _create_client(client)

    response = client.post(
        "/api/clients/", json={"customer_name": "Other", "phone_number": "9000000001"}
    )

    assert response.status_code == 409
    assert response.json()["existingClientId"] == created["id"]


def test_missing_client_is_404(client):
    response = client.get("/api/clients/999")

    assert response.status_code == 404
    assert "999" in response.json()["error"]


def test_update_status_and_merge(client):
    created = _create_client(client, area="Pune")

    status = client.patch(f"/api/clients/{created['id']}/status", json={"status": "Approved"})
    merged = client.post(
        f"/api/clients/{created['id']}/merge", json={"area": "", "business_name": "Asha Foods"}
    )
    edited = client.put(f"/api/clients/{created['id']}", json={"remarks": "VIP"})

    assert status.json()["status"] == "Approved"
    assert status.json()["status_updated_at"] is not None
    assert merged.json()["area"] == "Pune"
    assert merged.json()["business_name"] == "Asha Foods"
    assert edited.json()["remarks"] == "VIP"
    follow_ups = client.get(f"/api/clients/{created['id']}/follow-ups").json()
    assert [f["type"] for f in follow_ups] == ["Other"]


def test_follow_up_times_are_shifted(client):
    created = _create_client(client)

    response = client.post(
        f"/api/clients/{created['id']}/follow-ups",
        json={
            "type": "Call",
            "notes": "Asked for bank statements",
            "next_follow_up_date": "2024-06-01T10:00:00Z",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["next_follow_up_date"] == "2024-06-01T15:30:00"
    assert body["reminder_sent"] is False
    refreshed = client.get(f"/api/clients/{created['id']}").json()
    assert refreshed["next_follow_up"] == "2024-06-01T15:30:00"


def test_loans_endpoints(client):
    created = _create_client(client)

    response = client.post(
        f"/api/clients/{created['id']}/loans",
        json={"amount": 250000, "disbursement_date": "2024-06-02"},
    )

    assert response.status_code == 201
    loan = response.json()
    assert loan["client_id"] == created["id"]
    assert client.get(f"/api/clients/{created['id']}").json()["status"] == "Disbursed"
    assert len(client.get(f"/api/clients/{created['id']}/loans").json()) == 1

    assert client.delete(f"/api/loans/{loan['id']}").status_code == 200
    assert client.get(f"/api/clients/{created['id']}/loans").json() == []
    assert client.delete(f"/api/loans/{loan['id']}").status_code == 404


def test_delete_client(client):
    created = _create_client(client)

    assert client.delete(f"/api/clients/{created['id']}").json() == {"status": "deleted"}
    assert client.get(f"/api/clients/{created['id']}").status_code == 404


def test_backup_endpoints(client):
    _create_client(client)

    created = client.post("/api/backups/")
    assert created.status_code == 200
    body = created.json()
    assert body["message"] == "Backup created successfully"
    assert body["backupPath"].startswith("backup_")

    listing = client.get("/api/backups/").json()
    assert body["backupPath"] in [b["filename"] for b in listing]

    download = client.get(f"/api/backups/{body['backupPath']}")
    assert download.status_code == 200
    assert download.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert download.content[:2] == b"PK"


def test_backup_download_errors(client):
    assert client.get("/api/backups/..backup.xlsx").status_code == 400
    assert client.get("/api/backups/backup_1999-01-01_00-00-00.xlsx").status_code == 404


def test_settings_endpoints(client):
    current = client.get("/api/settings/")

    assert current.status_code == 200
    assert current.json()["id"] == 1
    assert current.json()["notification_email"] == "fallback@example.com"
    assert current.json()["reminder_time_before"] == 2

    updated = client.put("/api/settings/", json={"reminder_time_before": 4})

    assert updated.json()["reminder_time_before"] == 4
    assert updated.json()["notification_email"] == "fallback@example.com"
