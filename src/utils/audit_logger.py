"""Append-only audit log for temporary admin lifecycle events.

Writes are best-effort: a failed write is logged and reported through the
return value, never raised, so it cannot fail the operation being audited.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pytz
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import AuditWriteFailure
from models.temp_admin_audit_log import TempAdminAuditLogModel
from schemas.temp_admin import AuditAction, AuditEvent
from utils.converters import model_to_audit_event

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(pytz.utc)


class AuditLogger:
    """Records AuditEvents in the ``temp_admin_audit_log`` table."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = _utcnow):
        self.db = db
        self.clock = clock

    def _write(
        self,
        action: AuditAction,
        temp_admin_id: str,
        performed_by: str,
        details: Optional[Dict[str, Any]],
    ) -> AuditEvent:
        model = TempAdminAuditLogModel(
            action=action.value,
            temp_admin_id=temp_admin_id,
            performed_by=performed_by,
            details=details,
            timestamp=self.clock(),
        )
        try:
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise AuditWriteFailure(
                f"Failed to store {action.value} for {temp_admin_id}"
            ) from e
        return model_to_audit_event(model)

    def log_event(
        self,
        action: AuditAction,
        temp_admin_id: str,
        performed_by: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditEvent]:
        """Append one event.

        Returns:
            The stored AuditEvent, or None when the write failed. A None result
            is a gap in the audit trail and is logged at ERROR for monitoring.
        """
        try:
            return self._write(action, temp_admin_id, performed_by, details)
        except AuditWriteFailure:
            logger.exception(
                "Audit write failed: action=%s temp_admin_id=%s performed_by=%s",
                action.value,
                temp_admin_id,
                performed_by,
            )
            return None

    def list_events(self, temp_admin_id: Optional[str] = None) -> List[AuditEvent]:
        """List events oldest first, optionally for a single grant."""
        query = self.db.query(TempAdminAuditLogModel)
        if temp_admin_id:
            query = query.filter(TempAdminAuditLogModel.temp_admin_id == temp_admin_id)
        models = query.order_by(
            TempAdminAuditLogModel.timestamp.asc(), TempAdminAuditLogModel.id.asc()
        ).all()
        return [model_to_audit_event(m) for m in models]
