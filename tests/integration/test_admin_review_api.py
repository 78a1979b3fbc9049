from fastapi.testclient import TestClient

from intakedesk.db.models import Application
from intakedesk.db.session import SessionLocal


def _submit(client: TestClient, form_data: dict) -> str:
    response = client.post(
        "/api/applications",
        data=form_data,
        files={"cv": ("cv.pdf", b"%PDF", "application/pdf")},
    )
    assert response.status_code == 201
    return response.json()["id"]


def test_listing_requires_session(client: TestClient, form_data) -> None:
    _submit(client, form_data)
    response = client.get("/api/admin/applications")
    assert response.status_code == 401


def test_operator_update_is_visible_on_next_read(logged_in_client: TestClient, form_data) -> None:
    app_id = _submit(logged_in_client, form_data)

    response = logged_in_client.patch(
        f"/api/admin/applications/{app_id}",
        json={"status": "in_review", "notes": "Strong portfolio"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "in_review"

    listed = logged_in_client.get("/api/admin/applications").json()
    assert listed[0]["id"] == app_id
    assert listed[0]["status"] == "in_review"
    assert listed[0]["notes"] == "Strong portfolio"
    assert listed[0]["cv_url"].startswith(f"/files/{app_id}/cv.pdf?token=")

    filtered = logged_in_client.get("/api/admin/applications", params={"status": "rejected"}).json()
    assert filtered == []


def test_update_with_invalid_status_is_rejected(logged_in_client: TestClient, form_data) -> None:
    app_id = _submit(logged_in_client, form_data)
    response = logged_in_client.patch(f"/api/admin/applications/{app_id}", json={"status": "hired"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_update_unknown_application_is_404(logged_in_client: TestClient) -> None:
    response = logged_in_client.patch("/api/admin/applications/missing", json={"status": "accepted"})
    assert response.status_code == 404
    assert response.json() == {"error": "Application not found."}


def test_update_without_session_does_not_write(client: TestClient, form_data) -> None:
    app_id = _submit(client, form_data)
    response = client.patch(f"/api/admin/applications/{app_id}", json={"status": "accepted", "notes": "x"})
    assert response.status_code == 401

    with SessionLocal() as db:
        row = db.get(Application, app_id)
        assert row.status == "received"
        assert row.notes is None
