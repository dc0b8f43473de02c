"""User directory routes.

Access is role based. Temporary admins act with the permissions of their
grant, so a grant for ``teacher`` opens the student list but not the full
directory.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from api.routes.auth import require_roles
from config import ROLE_ADMIN, ROLE_STUDENT, ROLE_TEACHER
from core.dependencies import UserManagerDep
from schemas.user import PublicUser, User, UserListResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=UserListResponse, summary="List users")
def list_users(
    user_manager: UserManagerDep,
    role: Optional[str] = None,
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
) -> UserListResponse:
    """List every user, optionally filtered by role. Administrators only."""
    users = user_manager.list_users(role=role)
    return UserListResponse(users=[PublicUser.from_user(u) for u in users])


@router.get("/students", response_model=UserListResponse, summary="List students")
def list_students(
    user_manager: UserManagerDep,
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_TEACHER)),
) -> UserListResponse:
    users = user_manager.list_users(role=ROLE_STUDENT)
    return UserListResponse(users=[PublicUser.from_user(u) for u in users])
