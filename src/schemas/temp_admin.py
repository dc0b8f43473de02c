"""Temporary admin schema definitions.

HTTP payloads use camelCase field names (``expiresAt``, ``tempAdminId``) while
Python code uses snake_case; both spellings are accepted on input.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuditAction(str, Enum):
    CREATE_TEMP_ADMIN = "CREATE_TEMP_ADMIN"
    REVOKE_TEMP_ADMIN = "REVOKE_TEMP_ADMIN"


class ErrorKind(str, Enum):
    """Failure categories returned by the lifecycle manager."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"


class TempAdminRecord(CamelModel):
    id: str
    email: str
    expires_at: datetime
    permissions: List[str] = Field(default_factory=list)
    created_by: str
    reason: str
    is_active: bool
    created_at: datetime
    last_used: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None
    revoke_reason: Optional[str] = None


class AuditEvent(CamelModel):
    id: Optional[int] = None
    action: AuditAction
    temp_admin_id: str
    performed_by: str
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime


# --- Requests ---

class CreateTempAdminRequest(CamelModel):
    """Body of ``POST /api/temp-admin/create``.

    Fields are optional at the schema level so that missing values produce the
    structured 400 response instead of a framework validation error.
    """

    email: Optional[str] = None
    password: Optional[str] = None
    expires_at: Optional[datetime] = None
    permissions: Optional[List[str]] = None
    created_by: Optional[str] = None
    reason: Optional[str] = None


class RevokeTempAdminRequest(CamelModel):
    temp_admin_id: Optional[str] = None
    revoked_by: Optional[str] = None
    reason: Optional[str] = None


# --- Results ---

class OperationResult(CamelModel):
    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = Field(default=None, exclude=True)


class CreateTempAdminResult(OperationResult):
    temp_admin: Optional[TempAdminRecord] = None
    # Only set when the password was generated
    password: Optional[str] = None


class RevokeTempAdminResult(OperationResult):
    pass


class ListTempAdminsResult(OperationResult):
    temp_admins: List[TempAdminRecord] = Field(default_factory=list)


class CleanupResult(OperationResult):
    cleaned_count: Optional[int] = None


class ValidationResult(CamelModel):
    is_valid: bool
    temp_admin: Optional[TempAdminRecord] = None
    error: Optional[str] = None
