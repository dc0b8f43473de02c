"""Database connection and session management.

This module handles the database connection using SQLAlchemy. SQLite is the
default backend; any SQLAlchemy URL can be supplied through DATABASE_URL.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATA_DIR, DATABASE_URL, DB_TIMEOUT_SECONDS
from models.base import Base
# Import models to ensure they are registered with Base.metadata
from models import temp_admin, temp_admin_audit_log, user  # noqa: F401


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        kwargs = {
            "connect_args": {"check_same_thread": False, "timeout": DB_TIMEOUT_SECONDS},
        }
        # In-memory databases must share a single connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            DATA_DIR.mkdir(parents=True, exist_ok=True)
        return kwargs
    return {"pool_pre_ping": True, "pool_timeout": DB_TIMEOUT_SECONDS}


SQLALCHEMY_DATABASE_URL = DATABASE_URL

engine = create_engine(SQLALCHEMY_DATABASE_URL, **_engine_kwargs(SQLALCHEMY_DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    Base.metadata.create_all(bind=engine)


# Initialize DB (create tables if not exist)
init_db()


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
