"""User management utilities.

This module is the identity provider of the service: it stores logins,
hashes passwords, authenticates users and lets the temporary admin lifecycle
create, disable and delete identities.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import bcrypt
import pytz
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import SUPPORTED_ROLES, ROLE_TEMP_ADMIN
from core.exceptions import ConflictError, DependencyError, ValidationError
from models.user import UserModel
from schemas.user import User
from utils.converters import model_to_user, user_to_model

logger = logging.getLogger(__name__)

# Use bcrypt directly instead of passlib to avoid initialization issues
# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS = 12


class UserNotFoundError(Exception):
    """Exception raised when a user is not found."""

    pass


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        # Truncate password if it exceeds bcrypt's 72-byte limit
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > 72:
            logger.warning(
                "Password exceeds 72 bytes (%d bytes), truncating", len(password_bytes)
            )
            password_bytes = password_bytes[:72]

        # bcrypt.hashpw returns bytes, we need to decode to string
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        hashed = bcrypt.hashpw(password_bytes, salt)
        return hashed.decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode("utf-8")[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def create_identity(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        display_name: Optional[str] = None,
    ) -> User:
        """Create a login carrying the given identity metadata.

        The role is taken from ``metadata["role"]``.

        Args:
            email: Login email.
            password: Plain text password; only its hash is stored.
            metadata: Identity claims copied into session tokens.
            display_name: Optional display name.

        Returns:
            Created User object.

        Raises:
            ConflictError: If a login already exists for the email.
            DependencyError: If the database write fails.
        """
        email = email.strip().lower()
        role = metadata.get("role")
        if role not in SUPPORTED_ROLES and role != ROLE_TEMP_ADMIN:
            raise ValidationError(f"Invalid role: {role}")

        user = User(
            email=email,
            password_hash=self.hash_password(password),
            role=role,
            display_name=display_name,
            user_metadata=dict(metadata),
            created_at=datetime.now(pytz.utc),
        )

        # Handle potential race condition: if two requests check simultaneously,
        # both might pass the check but database unique constraint will catch it
        try:
            self.db.add(user_to_model(user))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"A login already exists for '{email}'") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DependencyError("Failed to create identity") from e

        logger.info("Created identity %s with role %s", user.user_id, role)
        return user

    def create_user(
        self,
        email: str,
        password: str,
        role: str,
        display_name: Optional[str] = None,
    ) -> User:
        """Create a permanent (non-temporary) user."""
        if role not in SUPPORTED_ROLES:
            raise ValidationError(
                f"Invalid role: {role}. Must be one of {', '.join(SUPPORTED_ROLES)}."
            )
        return self.create_identity(email, password, {"role": role}, display_name)

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user for valid credentials, None otherwise.

        Disabled identities never authenticate.
        """
        user = self.get_user_by_email(email)
        if user is None or user.is_disabled:
            return None
        if not self.verify_password(password, user.password_hash):
            return None
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email.

        Args:
            email: Email to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = (
            self.db.query(UserModel)
            .filter(UserModel.email == email.strip().lower())
            .first()
        )
        if model:
            return model_to_user(model)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if model:
            return model_to_user(model)
        return None

    def list_users(self, role: Optional[str] = None) -> List[User]:
        """List users, newest first.

        Args:
            role: Only return users with this role.

        Returns:
            List of User objects.
        """
        query = self.db.query(UserModel)
        if role:
            query = query.filter(UserModel.role == role)
        models = query.order_by(UserModel.created_at.desc()).all()
        return [model_to_user(m) for m in models]

    def disable_identity(self, user_id: str) -> None:
        """Block further logins for an identity.

        Raises:
            UserNotFoundError: If the identity does not exist.
            DependencyError: If the database write fails.
        """
        try:
            model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
            if not model:
                raise UserNotFoundError(user_id)
            model.is_disabled = True
            model.user_metadata = {**(model.user_metadata or {}), "disabled": True}
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DependencyError(f"Failed to disable identity {user_id}") from e
        logger.info("Disabled identity %s", user_id)

    def delete_identity(self, user_id: str) -> None:
        """Physically delete an identity. Missing identities are ignored.

        Raises:
            DependencyError: If the database write fails.
        """
        try:
            deleted = (
                self.db.query(UserModel)
                .filter(UserModel.user_id == user_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DependencyError(f"Failed to delete identity {user_id}") from e
        if deleted:
            logger.info("Deleted identity %s", user_id)
