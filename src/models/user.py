"""User database model.

This module defines the login identities used by the local identity provider.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, String
from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    user_id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False)  # 'admin', 'teacher', 'student', 'parent' or 'temp_admin'
    display_name = Column(String, nullable=True)
    # Claims copied into session tokens (temp admin marker, permissions, expiry)
    user_metadata = Column(JSON, nullable=False, default=dict)
    is_disabled = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
