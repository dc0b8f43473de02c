"""Temporary admin audit log database model (append-only)."""

from sqlalchemy import JSON, Column, DateTime, Integer, String
from .base import Base


class TempAdminAuditLogModel(Base):
    """One row per temporary admin lifecycle transition."""

    __tablename__ = "temp_admin_audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String, nullable=False)  # 'CREATE_TEMP_ADMIN' or 'REVOKE_TEMP_ADMIN'
    temp_admin_id = Column(String, nullable=False, index=True)
    performed_by = Column(String, nullable=False)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
