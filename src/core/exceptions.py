"""Custom exception classes for the school administration service.

This module defines application-specific exceptions following Google Python
Style Guide.
"""


class SchoolAdminError(Exception):
    """Base exception for all school administration errors."""

    pass


class ValidationError(SchoolAdminError):
    """Raised when input is malformed or an expiry is not in the future."""

    pass


class ConflictError(SchoolAdminError):
    """Raised when an active temporary admin already exists for an email."""

    pass


class NotFoundError(SchoolAdminError):
    """Raised when a requested temporary admin cannot be found."""

    def __init__(self, temp_admin_id: str):
        """Initialize the exception.

        Args:
            temp_admin_id: The ID of the temporary admin that was not found.
        """
        self.temp_admin_id = temp_admin_id
        super().__init__(f"Temporary admin '{temp_admin_id}' not found")


class DependencyError(SchoolAdminError):
    """Raised when the identity provider or the store fails."""

    pass


class AuditWriteFailure(SchoolAdminError):
    """Raised when an audit event could not be persisted."""

    pass


class AccessDeniedError(SchoolAdminError):
    """Raised when the caller is not allowed to perform an operation."""

    pass
