"""Conversions between ORM models and pydantic schemas."""

from datetime import datetime
from typing import Optional

import pytz

from models.temp_admin import TempAdminModel
from models.temp_admin_audit_log import TempAdminAuditLogModel
from models.user import UserModel
from schemas.temp_admin import AuditEvent, TempAdminRecord
from schemas.user import User


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands timestamps back without tzinfo; they are stored as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def user_to_model(user: User) -> UserModel:
    return UserModel(
        user_id=user.user_id,
        email=user.email,
        password_hash=user.password_hash,
        role=user.role,
        display_name=user.display_name,
        user_metadata=dict(user.user_metadata),
        is_disabled=user.is_disabled,
        created_at=as_utc(user.created_at),
    )


def model_to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        email=model.email,
        password_hash=model.password_hash,
        role=model.role,
        display_name=model.display_name,
        user_metadata=dict(model.user_metadata or {}),
        is_disabled=bool(model.is_disabled),
        created_at=as_utc(model.created_at),
    )


def model_to_temp_admin(model: TempAdminModel) -> TempAdminRecord:
    return TempAdminRecord(
        id=model.id,
        email=model.email,
        expires_at=as_utc(model.expires_at),
        permissions=list(model.permissions or []),
        created_by=model.created_by,
        reason=model.reason,
        is_active=bool(model.is_active),
        created_at=as_utc(model.created_at),
        last_used=as_utc(model.last_used),
        revoked_at=as_utc(model.revoked_at),
        revoked_by=model.revoked_by,
        revoke_reason=model.revoke_reason,
    )


def model_to_audit_event(model: TempAdminAuditLogModel) -> AuditEvent:
    return AuditEvent(
        id=model.id,
        action=model.action,
        temp_admin_id=model.temp_admin_id,
        performed_by=model.performed_by,
        details=model.details,
        timestamp=as_utc(model.timestamp),
    )
