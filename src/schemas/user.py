"""User schema definitions.

This module defines the User data model and the authentication request and
response payloads.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz
from pydantic import BaseModel, Field

from config import ROLE_ADMIN


class User(BaseModel):
    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    email: str = Field(description="Login email, unique across users.")
    password_hash: str = Field(description="Bcrypt hash of the password.")
    role: str = Field(description="'admin', 'teacher', 'student', 'parent' or 'temp_admin'.")
    display_name: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Identity claims, e.g. the temp admin marker, permissions and expiry.",
    )
    is_disabled: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(pytz.utc))

    @property
    def is_temp_admin(self) -> bool:
        return bool(self.user_metadata.get("temp_admin"))

    @property
    def is_primary_admin(self) -> bool:
        """True for a permanent administrator; temporary admins never qualify."""
        return self.role == ROLE_ADMIN and not self.is_temp_admin


class PublicUser(BaseModel):
    """User information safe to return to clients."""

    user_id: str
    email: str
    role: str
    display_name: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls(
            user_id=user.user_id,
            email=user.email,
            role=user.role,
            display_name=user.display_name,
            user_metadata=user.user_metadata,
        )


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    user: PublicUser
    token: str
    token_type: str = "bearer"


class CurrentUserResponse(BaseModel):
    user: PublicUser


class UserListResponse(BaseModel):
    success: bool = True
    users: List[PublicUser]
