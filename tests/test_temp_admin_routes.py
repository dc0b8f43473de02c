from datetime import datetime, timedelta

import pytest
import pytz

import config
from conftest import auth_headers
from core.database import SessionLocal
from models.temp_admin import TempAdminModel
from utils.temp_admin_store import TempAdminStore


def _payload(**overrides):
    body = {
        "email": "substitute@school.test",
        "expiresAt": (datetime.now(pytz.utc) + timedelta(hours=2)).isoformat(),
        "permissions": ["admin", "teacher"],
        "createdBy": "principal@school.test",
        "reason": "Principal at a conference",
    }
    body.update(overrides)
    return body


def _load(temp_admin_id):
    with SessionLocal() as session:
        return TempAdminStore(session).get(temp_admin_id)


def _expire(temp_admin_id):
    with SessionLocal() as session:
        session.query(TempAdminModel).filter_by(id=temp_admin_id).update(
            {TempAdminModel.expires_at: datetime.now(pytz.utc) - timedelta(minutes=1)}
        )
        session.commit()


def test_create_returns_grant_and_generated_password(client, admin_headers):
    response = client.post("/api/temp-admin/create", json=_payload(), headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["password"]) == 16
    grant = body["tempAdmin"]
    assert grant["email"] == "substitute@school.test"
    assert grant["isActive"] is True
    assert grant["permissions"] == ["admin", "teacher"]
    assert "errorKind" not in body


def test_create_with_password_omits_it_from_response(client, admin_headers):
    response = client.post(
        "/api/temp-admin/create",
        json=_payload(password="Chosen#Secret1"),
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert "password" not in response.json()


def test_create_missing_fields_is_400(client, admin_headers):
    response = client.post(
        "/api/temp-admin/create", json=_payload(reason=None), headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Missing required fields"}


def test_create_past_expiry_is_400(client, admin_headers):
    past = (datetime.now(pytz.utc) - timedelta(hours=1)).isoformat()
    response = client.post(
        "/api/temp-admin/create", json=_payload(expiresAt=past), headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Expiration date must be in the future"


def test_create_duplicate_is_400(client, admin_headers):
    client.post("/api/temp-admin/create", json=_payload(), headers=admin_headers)
    response = client.post("/api/temp-admin/create", json=_payload(), headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_malformed_body_is_400(client, admin_headers):
    response = client.post(
        "/api/temp-admin/create",
        json=_payload(expiresAt="next tuesday"),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.parametrize("path", ["/api/temp-admin/create", "/api/temp-admin/revoke"])
def test_anonymous_caller_is_403(client, path):
    response = client.post(path, json={})

    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Unauthorized"}


def test_non_admin_is_403(client, teacher_headers):
    response = client.post("/api/temp-admin/create", json=_payload(), headers=teacher_headers)

    assert response.status_code == 403


def test_temp_admin_cannot_create_or_revoke(client, admin_headers, users):
    created = client.post(
        "/api/temp-admin/create",
        json=_payload(permissions=["admin"]),
        headers=admin_headers,
    ).json()
    temp_headers = auth_headers(users.get_user_by_id(created["tempAdmin"]["id"]))

    create = client.post(
        "/api/temp-admin/create",
        json=_payload(email="friend@school.test"),
        headers=temp_headers,
    )
    revoke = client.post(
        "/api/temp-admin/revoke",
        json={"tempAdminId": created["tempAdmin"]["id"], "revokedBy": "self"},
        headers=temp_headers,
    )

    assert create.status_code == 403
    assert revoke.status_code == 403


def test_revoke_and_repeat(client, admin_headers):
    grant = client.post(
        "/api/temp-admin/create", json=_payload(), headers=admin_headers
    ).json()["tempAdmin"]
    body = {"tempAdminId": grant["id"], "revokedBy": "principal@school.test", "reason": "Done"}

    first = client.post("/api/temp-admin/revoke", json=body, headers=admin_headers)
    second = client.post("/api/temp-admin/revoke", json=body, headers=admin_headers)

    assert first.json() == {"success": True}
    assert second.json() == {"success": True}
    record = _load(grant["id"])
    assert not record.is_active
    assert record.revoked_by == "principal@school.test"


def test_revoke_missing_fields_is_400(client, admin_headers):
    response = client.post(
        "/api/temp-admin/revoke", json={"tempAdminId": "x"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"


def test_revoke_unknown_grant_is_400(client, admin_headers):
    response = client.post(
        "/api/temp-admin/revoke",
        json={"tempAdminId": "missing", "revokedBy": "principal@school.test"},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_list_filters_inactive(client, admin_headers):
    first = client.post(
        "/api/temp-admin/create", json=_payload(email="a@school.test"), headers=admin_headers
    ).json()["tempAdmin"]
    client.post(
        "/api/temp-admin/create", json=_payload(email="b@school.test"), headers=admin_headers
    )
    client.post(
        "/api/temp-admin/revoke",
        json={"tempAdminId": first["id"], "revokedBy": "principal@school.test"},
        headers=admin_headers,
    )

    active = client.get("/api/temp-admin", headers=admin_headers).json()
    everything = client.get(
        "/api/temp-admin", params={"include_inactive": True}, headers=admin_headers
    ).json()

    assert [g["email"] for g in active["tempAdmins"]] == ["b@school.test"]
    assert {g["email"] for g in everything["tempAdmins"]} == {"a@school.test", "b@school.test"}


def test_cleanup_requires_token(client):
    assert client.post("/api/temp-admin/cleanup").status_code == 403
    wrong = client.post(
        "/api/temp-admin/cleanup", headers={"Authorization": "Bearer nope"}
    )
    assert wrong.status_code == 403
    assert wrong.json() == {"success": False, "error": "Unauthorized"}


def test_cleanup_disabled_without_configured_token(client, monkeypatch):
    monkeypatch.setattr(config, "CLEANUP_TOKEN", None)

    response = client.post(
        "/api/temp-admin/cleanup", headers={"Authorization": "Bearer None"}
    )

    assert response.status_code == 403


def test_cleanup_revokes_expired(client, admin_headers):
    expired = client.post(
        "/api/temp-admin/create", json=_payload(email="a@school.test"), headers=admin_headers
    ).json()["tempAdmin"]
    client.post(
        "/api/temp-admin/create", json=_payload(email="b@school.test"), headers=admin_headers
    )
    _expire(expired["id"])
    cron = {"Authorization": "Bearer cleanup-secret"}

    first = client.post("/api/temp-admin/cleanup", headers=cron)
    second = client.post("/api/temp-admin/cleanup", headers=cron)

    assert first.json() == {"success": True, "cleanedCount": 1}
    assert second.json() == {"success": True, "cleanedCount": 0}
    assert _load(expired["id"]).revoke_reason == "Expired - Auto cleanup"


def test_create_with_empty_password_generates_one(client, admin_headers):
    response = client.post(
        "/api/temp-admin/create", json=_payload(password=""), headers=admin_headers
    )

    assert response.status_code == 200
    assert len(response.json()["password"]) == 16
