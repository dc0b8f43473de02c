"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes,
following Google Python Style Guide and FastAPI best practices.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import user_manager
from utils import temp_admin_manager
from utils.audit_logger import AuditLogger
from utils.temp_admin_store import TempAdminStore


def build_temp_admin_manager(db: Session) -> temp_admin_manager.TempAdminManager:
    """Wire a TempAdminManager around a single database session.

    Args:
        db: Database session shared by the store, identity provider and audit log.

    Returns:
        TempAdminManager instance.
    """
    return temp_admin_manager.TempAdminManager(
        store=TempAdminStore(db),
        identity_provider=user_manager.UserManager(db),
        audit_logger=AuditLogger(db),
    )


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db)


def get_temp_admin_manager(
    db: Session = Depends(get_db),
) -> temp_admin_manager.TempAdminManager:
    """Get TempAdminManager instance with request-scoped DB session."""
    return build_temp_admin_manager(db)


# Type aliases for dependency injection
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
TempAdminManagerDep = Annotated[
    temp_admin_manager.TempAdminManager, Depends(get_temp_admin_manager)
]
