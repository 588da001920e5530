import io
from datetime import date, timedelta

from openpyxl import load_workbook

from sheetform.core.config import settings
from sheetform.core.security import create_access_token, is_authenticated
from sheetform.services.persistence import XLSX_MEDIA_TYPE

from .conftest import VALID_PAYLOAD

API = settings.API_V1_STR


def test_public_form_lists_enabled_fields_in_order(client):
    response = client.get(f"{API}/forms/default")

    assert response.status_code == 200
    body = response.json()
    assert body["sheet_id"] == "default"
    assert [f["key"] for f in body["fields"]] == ["name", "email", "phone", "message"]


def test_submission_intake(client):
    response = client.post(f"{API}/submissions", json=VALID_PAYLOAD)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["submission_id"]
    assert set(body) == {"success", "error", "validation_errors", "submission_id"}


def test_submission_intake_validation_errors(client):
    response = client.post(f"{API}/submissions", json={"name": "Jo", "email": "bad", "phone": "123", "message": "short"})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert set(body["validation_errors"]) == {"email", "phone", "message"}


def test_admin_endpoints_require_a_valid_cookie(client):
    assert client.get(f"{API}/submissions").status_code == 401
    assert client.get(f"{API}/sheets").status_code == 401
    assert client.get(f"{API}/export").status_code == 401

    client.cookies.set(settings.AUTH_COOKIE_NAME, "garbage")
    assert client.get(f"{API}/sheets").status_code == 401


def test_expired_token_is_rejected():
    assert is_authenticated(create_access_token("admin")) is True
    assert is_authenticated(create_access_token("admin", expires_delta=timedelta(minutes=-5))) is False
    assert is_authenticated(None) is False


def test_login_sets_cookie_and_logout_clears_it(client):
    bad = client.post(f"{API}/auth/login", json={"username": "admin", "password": "wrong"})
    assert bad.status_code == 401

    good = client.post(
        f"{API}/auth/login",
        json={"username": settings.ADMIN_USERNAME, "password": settings.ADMIN_PASSWORD},
    )
    assert good.status_code == 200
    assert settings.AUTH_COOKIE_NAME in good.cookies
    assert "httponly" in good.headers["set-cookie"].lower()
    assert client.get(f"{API}/auth/me").json() == {"authenticated": True, "username": settings.ADMIN_USERNAME}
    assert client.get(f"{API}/sheets").status_code == 200

    client.post(f"{API}/auth/logout")
    client.cookies.clear()
    assert client.get(f"{API}/auth/me").json()["authenticated"] is False


def test_admin_lists_and_updates_submissions(admin_client):
    submission_id = admin_client.post(f"{API}/submissions", json=VALID_PAYLOAD).json()["submission_id"]

    listed = admin_client.get(f"{API}/submissions", params={"sheet_id": "default"}).json()
    assert [s["id"] for s in listed] == [submission_id]
    assert listed[0]["status"] == "new"

    patched = admin_client.patch(f"{API}/submissions/{submission_id}", json={"status": "read", "notes": "ok"})
    assert patched.status_code == 200
    assert patched.json()["submission"]["status"] == "read"

    stats = admin_client.get(f"{API}/submissions/stats").json()
    assert stats["by_status"]["read"] == 1


def test_unknown_ids_answer_tagged_404(admin_client):
    response = admin_client.patch(f"{API}/submissions/missing", json={"status": "read"})

    assert response.status_code == 404
    assert response.json()["success"] is False
    assert admin_client.get(f"{API}/sheets/missing").status_code == 404


def test_sheet_crud_over_http(admin_client):
    created = admin_client.post(f"{API}/sheets", json={"name": "Events", "headers": [{"name": "Guest Name", "required": True}]})
    assert created.status_code == 201
    sheet_id = created.json()["sheet"]["id"]

    updated = admin_client.patch(f"{API}/sheets/{sheet_id}", json={"is_default": True})
    assert updated.json()["sheet"]["is_default"] is True
    form = admin_client.get(f"{API}/forms/default").json()
    assert [f["key"] for f in form["fields"]] == ["guest_name"]

    refused = admin_client.delete(f"{API}/sheets/{sheet_id}")
    assert refused.status_code == 400
    assert refused.json()["success"] is False

    admin_client.patch(f"{API}/sheets/default", json={"is_default": True})
    deleted = admin_client.delete(f"{API}/sheets/{sheet_id}")
    assert deleted.status_code == 200
    assert [s["id"] for s in admin_client.get(f"{API}/sheets").json()] == ["default"]


def test_export_downloads_workbook(admin_client):
    admin_client.post(f"{API}/submissions", json=VALID_PAYLOAD)

    response = admin_client.get(f"{API}/export")

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert f"form-submissions-{date.today().isoformat()}.xlsx" in response.headers["content-disposition"]
    wb = load_workbook(io.BytesIO(response.content))
    assert wb["Contact Form"]["A2"].value == "Jane Doe"


def test_export_generates_workbook_when_missing(admin_client, persistence):
    assert not persistence.workbook_path.exists()

    response = admin_client.get(f"{API}/export")

    assert response.status_code == 200
    assert persistence.workbook_path.exists()
