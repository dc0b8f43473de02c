from datetime import datetime, timedelta

import pytest
import pytz

from conftest import auth_headers
from core.database import SessionLocal
from models.temp_admin import TempAdminModel
from utils.temp_admin_store import TempAdminStore


@pytest.fixture
def temp_admin(client, admin_headers):
    body = {
        "email": "substitute@school.test",
        "expiresAt": (datetime.now(pytz.utc) + timedelta(hours=2)).isoformat(),
        "permissions": ["admin"],
        "createdBy": "principal@school.test",
        "reason": "Principal at a conference",
    }
    created = client.post("/api/temp-admin/create", json=body, headers=admin_headers).json()
    return created["tempAdmin"], created["password"]


def _load(temp_admin_id):
    with SessionLocal() as session:
        return TempAdminStore(session).get(temp_admin_id)


def _sign_in(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


def _cleared_cookies(response):
    return [h for h in response.headers.get_list("set-cookie") if "Max-Age=0" in h]


def test_login_token_carries_temp_admin_hint(client, temp_admin):
    grant, password = temp_admin

    response = client.post(
        "/api/auth/login", json={"email": grant["email"], "password": password}
    )

    user = response.json()["user"]
    assert user["role"] == "temp_admin"
    assert user["user_metadata"]["temp_admin"] is True


def test_valid_temp_admin_passes_and_is_stamped(client, temp_admin):
    grant, password = temp_admin
    headers = _sign_in(client, grant["email"], password)

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["user"]["user_id"] == grant["id"]
    assert _load(grant["id"]).last_used is not None


def test_revoked_temp_admin_is_signed_out(client, temp_admin, admin_headers):
    grant, password = temp_admin
    headers = _sign_in(client, grant["email"], password)
    client.post(
        "/api/temp-admin/revoke",
        json={"tempAdminId": grant["id"], "revokedBy": "principal@school.test"},
        headers=admin_headers,
    )

    response = client.get("/api/auth/me", headers=headers, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/sign-in"
    cleared = _cleared_cookies(response)
    assert any(h.startswith("access_token=") for h in cleared)
    assert any(h.startswith("refresh_token=") for h in cleared)


def test_expired_temp_admin_is_signed_out_and_revoked(client, temp_admin):
    grant, password = temp_admin
    headers = _sign_in(client, grant["email"], password)
    with SessionLocal() as session:
        session.query(TempAdminModel).filter_by(id=grant["id"]).update(
            {TempAdminModel.expires_at: datetime.now(pytz.utc) - timedelta(seconds=1)}
        )
        session.commit()

    response = client.get("/api/auth/me", headers=headers, follow_redirects=False)

    assert response.status_code == 303
    record = _load(grant["id"])
    assert not record.is_active
    assert record.revoked_by == "SYSTEM"
    assert record.revoke_reason == "Expired"


def test_revoked_temp_admin_cannot_sign_in_again(client, temp_admin, admin_headers):
    grant, password = temp_admin
    client.post(
        "/api/temp-admin/revoke",
        json={"tempAdminId": grant["id"], "revokedBy": "principal@school.test"},
        headers=admin_headers,
    )

    response = client.post(
        "/api/auth/login", json={"email": grant["email"], "password": password}
    )

    assert response.status_code == 401


def test_token_without_grant_row_fails_closed(client, users):
    # A login flagged as temporary but with no governance record
    orphan = users.create_identity(
        "orphan@school.test",
        "Orphan#2026",
        {"role": "temp_admin", "temp_admin": True, "permissions": ["admin"]},
    )

    response = client.get(
        "/api/auth/me", headers=auth_headers(orphan), follow_redirects=False
    )

    assert response.status_code == 303


def test_primary_admin_is_not_gated(client, admin_headers):
    response = client.get("/api/auth/me", headers=admin_headers, follow_redirects=False)

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"


def test_logout_clears_cookies(client):
    response = client.post("/api/auth/logout")

    assert response.json()["success"] is True
    assert len(_cleared_cookies(response)) == 2
