"""Temporary admin lifecycle management.

A temporary admin (grant) is a login with elevated, time-boxed privileges. Each
grant moves through exactly one transition, Active -> Revoked, triggered by a
manual revoke, by request-time validation noticing expiry, or by the expiry
sweep. Grants are never deleted.

The identity carries a ``temp_admin`` marker, its permissions and expiry so
the token alone can flag the account as temporary, but the store row is the
authority: ``validate_temp_admin`` re-checks it on every request.

Public methods return result objects instead of raising; failures carry a
user-safe ``error`` message and an ``error_kind`` the HTTP layer maps to a
status code.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

import pytz

from config import (
    REVOKE_REASON_CLEANUP,
    REVOKE_REASON_EXPIRED,
    ROLE_TEMP_ADMIN,
    SUPPORTED_ROLES,
    SYSTEM_ACTOR,
)
from core.exceptions import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from schemas.temp_admin import (
    AuditAction,
    CleanupResult,
    CreateTempAdminResult,
    ErrorKind,
    ListTempAdminsResult,
    RevokeTempAdminResult,
    ValidationResult,
)
from utils.audit_logger import AuditLogger
from utils.converters import as_utc
from utils.password_generator import generate_secure_password
from utils.temp_admin_store import TempAdminStore
from utils.user_manager import UserManager, UserNotFoundError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _utcnow() -> datetime:
    return datetime.now(pytz.utc)


class TempAdminManager:
    """Creates, validates, revokes, lists and sweeps temporary admins."""

    def __init__(
        self,
        store: TempAdminStore,
        identity_provider: UserManager,
        audit_logger: AuditLogger,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize TempAdminManager.

        Args:
            store: Grant persistence.
            identity_provider: Creates, disables and deletes logins.
            audit_logger: Best-effort append-only audit sink.
            clock: Returns the current aware UTC time.
        """
        self.store = store
        self.identity_provider = identity_provider
        self.audit_logger = audit_logger
        self.clock = clock

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    def _validate_create(
        self,
        email: str,
        expires_at: datetime,
        permissions: List[str],
        created_by: str,
        reason: str,
    ) -> datetime:
        if not email or "@" not in email:
            raise ValidationError("A valid email is required")
        if not created_by or not created_by.strip():
            raise ValidationError("createdBy is required")
        if not reason or not reason.strip():
            raise ValidationError("A reason is required")
        if not permissions:
            raise ValidationError("At least one permission is required")
        unknown = [p for p in permissions if p not in SUPPORTED_ROLES]
        if unknown:
            raise ValidationError(f"Unknown permissions: {', '.join(unknown)}")

        expires_at = as_utc(expires_at)
        if expires_at <= self.clock():
            raise ValidationError("Expiration date must be in the future")
        return expires_at

    def _rollback_identity(self, temp_admin_id: str) -> None:
        """Delete a login whose grant could not be persisted."""
        try:
            self.identity_provider.delete_identity(temp_admin_id)
        except DependencyError:
            logger.exception(
                "Rollback failed: identity %s has no temporary admin record", temp_admin_id
            )
        else:
            logger.warning("Rolled back identity %s after failed grant insert", temp_admin_id)

    def create_temp_admin(
        self,
        email: str,
        expires_at: datetime,
        permissions: List[str],
        created_by: str,
        reason: str,
        password: Optional[str] = None,
    ) -> CreateTempAdminResult:
        """Issue a temporary admin login and its governance record.

        Args:
            email: Login email of the temporary admin.
            expires_at: When access ends; must be in the future.
            permissions: Role tags granted to the holder.
            created_by: Administrator issuing the grant.
            reason: Why the grant is needed.
            password: Optional caller-chosen password. When omitted or empty a
                generated one is returned in the result exactly once and never
                stored.

        Returns:
            CreateTempAdminResult. ``password`` is only set when generated.
        """
        email = (email or "").strip().lower()
        try:
            expires_at = self._validate_create(
                email, expires_at, permissions, created_by, reason
            )
            if self.store.get_active_by_email(email):
                raise ConflictError("Active temporary admin already exists with this email")

            generated = not password
            secret = generate_secure_password() if generated else password

            identity = self.identity_provider.create_identity(
                email,
                secret,
                {
                    "role": ROLE_TEMP_ADMIN,
                    "temp_admin": True,
                    "permissions": list(permissions),
                    "expires_at": expires_at.isoformat(),
                },
            )

            # The login must not outlive a failed insert, including when the
            # request is cancelled mid-way.
            persisted = False
            try:
                record = self.store.insert(
                    temp_admin_id=identity.user_id,
                    email=email,
                    expires_at=expires_at,
                    permissions=permissions,
                    created_by=created_by,
                    reason=reason,
                    created_at=self.clock(),
                )
                persisted = True
            finally:
                if not persisted:
                    self._rollback_identity(identity.user_id)
        except ValidationError as e:
            return CreateTempAdminResult(
                success=False, error=str(e), error_kind=ErrorKind.VALIDATION
            )
        except ConflictError as e:
            return CreateTempAdminResult(
                success=False, error=str(e), error_kind=ErrorKind.CONFLICT
            )
        except DependencyError:
            logger.exception("Error creating temporary admin for %s", email)
            return CreateTempAdminResult(
                success=False, error=INTERNAL_ERROR_MESSAGE, error_kind=ErrorKind.DEPENDENCY
            )

        self.audit_logger.log_event(
            AuditAction.CREATE_TEMP_ADMIN,
            temp_admin_id=record.id,
            performed_by=created_by,
            details={
                "email": email,
                "permissions": list(permissions),
                "expiresAt": expires_at.isoformat(),
                "reason": reason,
            },
        )
        logger.info(
            "Created temporary admin %s (%s) expiring %s, by %s",
            record.id,
            email,
            expires_at.isoformat(),
            created_by,
        )
        return CreateTempAdminResult(
            success=True,
            temp_admin=record,
            password=secret if generated else None,
        )

    # ------------------------------------------------------------------
    # revoke
    # ------------------------------------------------------------------

    def _disable_identity(self, temp_admin_id: str) -> bool:
        """Disable the login behind a grant.

        Failure is logged and reported, not raised: the revoked store row is
        authoritative and the request gate rejects the login regardless.
        """
        try:
            self.identity_provider.disable_identity(temp_admin_id)
        except (DependencyError, UserNotFoundError):
            logger.exception("Failed to disable identity %s", temp_admin_id)
            return False
        return True

    def revoke_temp_admin(
        self,
        temp_admin_id: str,
        revoked_by: str,
        reason: Optional[str] = None,
    ) -> RevokeTempAdminResult:
        """Revoke a grant. Revoking an inactive grant is a successful no-op.

        Args:
            temp_admin_id: Grant (and identity) id.
            revoked_by: Administrator or SYSTEM.
            reason: Optional free-text reason.

        Returns:
            RevokeTempAdminResult.
        """
        if not temp_admin_id or not revoked_by:
            return RevokeTempAdminResult(
                success=False,
                error="tempAdminId and revokedBy are required",
                error_kind=ErrorKind.VALIDATION,
            )

        try:
            record = self.store.get(temp_admin_id)
            if record is None:
                raise NotFoundError(temp_admin_id)
            if not record.is_active:
                logger.info("Temporary admin %s already revoked", temp_admin_id)
                return RevokeTempAdminResult(success=True)

            transitioned = self.store.mark_revoked(
                temp_admin_id, revoked_by, reason, self.clock()
            )
        except NotFoundError:
            return RevokeTempAdminResult(
                success=False,
                error="Temporary admin not found",
                error_kind=ErrorKind.NOT_FOUND,
            )
        except DependencyError:
            logger.exception("Error revoking temporary admin %s", temp_admin_id)
            return RevokeTempAdminResult(
                success=False, error=INTERNAL_ERROR_MESSAGE, error_kind=ErrorKind.DEPENDENCY
            )

        if not transitioned:
            # A concurrent revocation won; it owns the audit entry.
            return RevokeTempAdminResult(success=True)

        identity_disabled = self._disable_identity(temp_admin_id)
        self.audit_logger.log_event(
            AuditAction.REVOKE_TEMP_ADMIN,
            temp_admin_id=temp_admin_id,
            performed_by=revoked_by,
            details={
                "reason": reason,
                "email": record.email,
                "identityDisabled": identity_disabled,
            },
        )
        logger.info(
            "Revoked temporary admin %s by %s (%s)", temp_admin_id, revoked_by, reason
        )
        return RevokeTempAdminResult(success=True)

    # ------------------------------------------------------------------
    # validate
    # ------------------------------------------------------------------

    def validate_temp_admin(self, temp_admin_id: str) -> ValidationResult:
        """Check a grant on behalf of an incoming request.

        Fails closed: unknown, inactive or expired grants and store failures
        all yield ``is_valid=False``. An expired grant is revoked on the spot.
        A valid grant gets its ``last_used`` stamped.
        """
        try:
            record = self.store.get(temp_admin_id) if temp_admin_id else None
            if record is None or not record.is_active:
                return ValidationResult(
                    is_valid=False, error="Temporary admin not found or inactive"
                )

            now = self.clock()
            if now > record.expires_at:
                self.revoke_temp_admin(temp_admin_id, SYSTEM_ACTOR, REVOKE_REASON_EXPIRED)
                return ValidationResult(
                    is_valid=False, error="Temporary admin access has expired"
                )

            if not self.store.touch_last_used(temp_admin_id, now):
                return ValidationResult(
                    is_valid=False, error="Temporary admin not found or inactive"
                )
        except DependencyError:
            logger.exception("Error validating temporary admin %s", temp_admin_id)
            return ValidationResult(is_valid=False, error=INTERNAL_ERROR_MESSAGE)

        return ValidationResult(
            is_valid=True, temp_admin=record.model_copy(update={"last_used": now})
        )

    # ------------------------------------------------------------------
    # list / sweep
    # ------------------------------------------------------------------

    def list_temp_admins(self, include_inactive: bool = False) -> ListTempAdminsResult:
        """List grants newest first; active only unless include_inactive."""
        try:
            records = self.store.list_grants(include_inactive=include_inactive)
        except DependencyError:
            logger.exception("Error listing temporary admins")
            return ListTempAdminsResult(
                success=False, error=INTERNAL_ERROR_MESSAGE, error_kind=ErrorKind.DEPENDENCY
            )
        return ListTempAdminsResult(success=True, temp_admins=records)

    def cleanup_expired_temp_admins(self) -> CleanupResult:
        """Revoke every active grant whose expiry has passed.

        Each revocation runs independently; failures are logged and do not
        stop the others.

        Returns:
            CleanupResult whose ``cleaned_count`` is the number of expired
            grants found, not necessarily the number revoked successfully.
        """
        try:
            expired_ids = self.store.list_expired_active_ids(self.clock())
        except DependencyError:
            logger.exception("Error finding expired temporary admins")
            return CleanupResult(
                success=False, error=INTERNAL_ERROR_MESSAGE, error_kind=ErrorKind.DEPENDENCY
            )

        failed = 0
        for temp_admin_id in expired_ids:
            result = self.revoke_temp_admin(temp_admin_id, SYSTEM_ACTOR, REVOKE_REASON_CLEANUP)
            if not result.success:
                failed += 1
                logger.warning(
                    "Cleanup could not revoke temporary admin %s: %s",
                    temp_admin_id,
                    result.error,
                )

        if expired_ids:
            logger.info(
                "Expired temporary admin cleanup processed %d grant(s), %d failed",
                len(expired_ids),
                failed,
            )
        return CleanupResult(success=True, cleaned_count=len(expired_ids))
