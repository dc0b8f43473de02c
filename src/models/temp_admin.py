"""Temporary admin grant database model."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String, Text, text
from .base import Base


class TempAdminModel(Base):
    """A time-boxed elevated-privilege grant.

    The primary key is the user_id of the login created for the grant. Rows are
    never deleted; revocation flips ``is_active`` and stamps the revoke columns.
    """

    __tablename__ = "temp_admins"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    permissions = Column(JSON, nullable=False, default=list)
    created_by = Column(String, nullable=False)
    reason = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    last_used = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    revoked_by = Column(String, nullable=True)
    revoke_reason = Column(Text, nullable=True)

    __table_args__ = (
        # At most one active grant per email
        Index(
            "uq_temp_admins_active_email",
            "email",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )
