from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import ConflictError, DependencyError
from utils.temp_admin_store import TempAdminStore


def _insert(store, clock, temp_admin_id, email="sub@school.test", hours=1):
    return store.insert(
        temp_admin_id=temp_admin_id,
        email=email,
        expires_at=clock.now + timedelta(hours=hours),
        permissions=["admin"],
        created_by="principal@school.test",
        reason="Cover for exams",
        created_at=clock.now,
    )


def test_second_active_grant_for_email_violates_unique_index(store, clock):
    _insert(store, clock, "ta-1")

    with pytest.raises(ConflictError):
        _insert(store, clock, "ta-2")


def test_revoked_grant_frees_the_email(store, clock):
    _insert(store, clock, "ta-1")
    assert store.mark_revoked("ta-1", "principal", None, clock.now)

    record = _insert(store, clock, "ta-2")
    assert record.is_active


def test_mark_revoked_transitions_once(store, clock):
    _insert(store, clock, "ta-1")

    assert store.mark_revoked("ta-1", "principal", "done", clock.now) is True
    assert store.mark_revoked("ta-1", "SYSTEM", "Expired", clock.now) is False

    record = store.get("ta-1")
    assert record.revoked_by == "principal"
    assert record.revoke_reason == "done"


def test_list_expired_active_ids(store, clock):
    _insert(store, clock, "ta-1", "a@school.test", hours=1)
    _insert(store, clock, "ta-2", "b@school.test", hours=3)
    clock.advance(hours=2)

    assert store.list_expired_active_ids(clock.now) == ["ta-1"]


def test_read_retries_transient_errors(db):
    store = TempAdminStore(db, read_retries=2)
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise OperationalError("SELECT", {}, Exception("database is locked"))
        return "ok"

    assert store._read("load", flaky) == "ok"
    assert len(calls) == 3


def test_read_gives_up_after_retries(db):
    store = TempAdminStore(db, read_retries=1)

    def locked():
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    with pytest.raises(DependencyError):
        store._read("load", locked)
