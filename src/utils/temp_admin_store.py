"""Persistence of temporary admin grants.

Every database failure surfaces as DependencyError. Reads retry transient
OperationalErrors (lock or connection timeouts) before giving up; writes never
retry.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import READ_RETRY_ATTEMPTS
from core.exceptions import ConflictError, DependencyError
from models.temp_admin import TempAdminModel
from schemas.temp_admin import TempAdminRecord
from utils.converters import model_to_temp_admin

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TempAdminStore:
    """Reads and writes the ``temp_admins`` table."""

    def __init__(self, db: Session, read_retries: int = READ_RETRY_ATTEMPTS):
        self.db = db
        self.read_retries = read_retries

    def _read(self, description: str, query: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return query()
            except OperationalError as e:
                self.db.rollback()
                if attempt >= self.read_retries:
                    raise DependencyError(f"Failed to {description}") from e
                attempt += 1
                logger.warning(
                    "Transient error while trying to %s (attempt %d): %s",
                    description,
                    attempt,
                    e,
                )
            except SQLAlchemyError as e:
                self.db.rollback()
                raise DependencyError(f"Failed to {description}") from e

    def insert(
        self,
        temp_admin_id: str,
        email: str,
        expires_at: datetime,
        permissions: List[str],
        created_by: str,
        reason: str,
        created_at: datetime,
    ) -> TempAdminRecord:
        """Persist a new active grant.

        Raises:
            ConflictError: If another active grant exists for the email.
            DependencyError: If the write fails for any other reason.
        """
        model = TempAdminModel(
            id=temp_admin_id,
            email=email,
            expires_at=expires_at,
            permissions=list(permissions),
            created_by=created_by,
            reason=reason,
            is_active=True,
            created_at=created_at,
        )
        try:
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                "Active temporary admin already exists with this email"
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DependencyError("Failed to store temporary admin") from e
        return model_to_temp_admin(model)

    def get(self, temp_admin_id: str) -> Optional[TempAdminRecord]:
        def query():
            model = (
                self.db.query(TempAdminModel)
                .filter(TempAdminModel.id == temp_admin_id)
                .first()
            )
            return model_to_temp_admin(model) if model else None

        return self._read("load temporary admin", query)

    def get_active_by_email(self, email: str) -> Optional[TempAdminRecord]:
        def query():
            model = (
                self.db.query(TempAdminModel)
                .filter(TempAdminModel.email == email, TempAdminModel.is_active.is_(True))
                .first()
            )
            return model_to_temp_admin(model) if model else None

        return self._read("look up active temporary admin", query)

    def list_grants(self, include_inactive: bool = False) -> List[TempAdminRecord]:
        """List grants, newest created first."""

        def query():
            q = self.db.query(TempAdminModel)
            if not include_inactive:
                q = q.filter(TempAdminModel.is_active.is_(True))
            models = q.order_by(TempAdminModel.created_at.desc()).all()
            return [model_to_temp_admin(m) for m in models]

        return self._read("list temporary admins", query)

    def list_expired_active_ids(self, now: datetime) -> List[str]:
        def query():
            rows = (
                self.db.query(TempAdminModel.id)
                .filter(
                    TempAdminModel.is_active.is_(True),
                    TempAdminModel.expires_at < now,
                )
                .all()
            )
            return [row.id for row in rows]

        return self._read("find expired temporary admins", query)

    def mark_revoked(
        self,
        temp_admin_id: str,
        revoked_by: str,
        reason: Optional[str],
        now: datetime,
    ) -> bool:
        """Flip an active grant to revoked.

        The update only matches active rows, so concurrent revocations of the
        same grant converge and exactly one of them returns True.

        Returns:
            True if this call performed the transition, False if the grant was
            already inactive or does not exist.
        """
        try:
            updated = (
                self.db.query(TempAdminModel)
                .filter(TempAdminModel.id == temp_admin_id, TempAdminModel.is_active.is_(True))
                .update(
                    {
                        TempAdminModel.is_active: False,
                        TempAdminModel.revoked_at: now,
                        TempAdminModel.revoked_by: revoked_by,
                        TempAdminModel.revoke_reason: reason,
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DependencyError(f"Failed to revoke temporary admin {temp_admin_id}") from e
        return updated == 1

    def touch_last_used(self, temp_admin_id: str, now: datetime) -> bool:
        """Stamp ``last_used`` on an active grant. Returns False if none matched."""
        try:
            updated = (
                self.db.query(TempAdminModel)
                .filter(TempAdminModel.id == temp_admin_id, TempAdminModel.is_active.is_(True))
                .update({TempAdminModel.last_used: now}, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DependencyError(f"Failed to update last use of {temp_admin_id}") from e
        return updated == 1
