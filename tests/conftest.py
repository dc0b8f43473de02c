import os

# Must be set before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["CLEANUP_TOKEN"] = "cleanup-secret"

from datetime import datetime, timedelta

import pytest
import pytz
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from api.routes.auth import build_token_claims, create_access_token
from core.database import SessionLocal, engine
from models.base import Base
from utils import user_manager as user_manager_module
from utils.audit_logger import AuditLogger
from utils.temp_admin_manager import TempAdminManager
from utils.temp_admin_store import TempAdminStore
from utils.user_manager import UserManager


class FakeClock:
    """Controllable replacement for the UTC clock."""

    def __init__(self, now=None):
        self.now = now or datetime(2026, 3, 2, 9, 0, tzinfo=pytz.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class UnreachableSession:
    """Wraps a session so every query fails the way a locked database does."""

    def __init__(self, session):
        self._session = session

    def query(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    def __getattr__(self, name):
        return getattr(self._session, name)


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(user_manager_module, "BCRYPT_ROUNDS", 4)


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(reset_db):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def users(db):
    return UserManager(db)


@pytest.fixture
def store(db):
    return TempAdminStore(db)


@pytest.fixture
def audit(db, clock):
    return AuditLogger(db, clock=clock)


@pytest.fixture
def manager(store, users, audit, clock):
    return TempAdminManager(
        store=store, identity_provider=users, audit_logger=audit, clock=clock
    )


@pytest.fixture
def client(reset_db):
    from app import app

    with TestClient(app) as test_client:
        yield test_client


def auth_headers(user):
    token = create_access_token(build_token_claims(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(users):
    return users.create_user("principal@school.test", "Principal#2026", "admin")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def teacher_headers(users):
    teacher = users.create_user("teacher@school.test", "Teacher#2026", "teacher")
    return auth_headers(teacher)
