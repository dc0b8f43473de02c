"""Authentication routes.

This module handles HTTP endpoints for signing in and out, and the token
helpers and dependencies that identify the caller on other routes.

Token claims mirror the identity metadata (``role``, ``temp_admin``,
``permissions``, ``expires_at``). They are a fast hint only: temporary admin
tokens are re-checked against the store on every request by the validation
gate, and the store is the security boundary.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Set

import pytz
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from config import (
    ACCESS_TOKEN_COOKIE_NAME,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    JWT_ALGORITHM,
    JWT_SECRET_KEY,
    REFRESH_TOKEN_COOKIE_NAME,
)
from core.dependencies import UserManagerDep
from core.exceptions import AccessDeniedError
from schemas.user import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    PublicUser,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# HTTP Bearer token security; the session cookie is accepted as a fallback
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Args:
        data: Data to encode in the token.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token string.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(pytz.utc) + expires_delta
    else:
        expire = datetime.now(pytz.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)
    return encoded_jwt


def build_token_claims(user: User) -> Dict[str, Any]:
    claims = {"sub": user.user_id, "email": user.email, "role": user.role}
    if user.is_temp_admin:
        claims.update(
            {
                "temp_admin": True,
                "permissions": user.user_metadata.get("permissions", []),
                "expires_at": user.user_metadata.get("expires_at"),
            }
        )
    return claims


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode a token, returning None instead of raising when it is invalid."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("sub") is None:
        return None
    return payload


def extract_token(request: Request) -> Optional[str]:
    """Read the session token from the Authorization header or the cookie."""
    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE_NAME)


def verify_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Verify the JWT from the Authorization header or the session cookie.

    Returns:
        Decoded token payload.

    Raises:
        HTTPException: If the token is missing, invalid or expired.
    """
    token = credentials.credentials if credentials else extract_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return payload


def _load_user(payload: dict, user_manager) -> Optional[User]:
    user = user_manager.get_user_by_id(payload["sub"])
    if user is None or user.is_disabled:
        return None
    return user


def get_current_user(
    user_manager: UserManagerDep,
    token_payload: dict = Depends(verify_token),
) -> User:
    """Get current authenticated user.

    Raises:
        HTTPException: If the user is unknown or disabled.
    """
    user = _load_user(token_payload, user_manager)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_optional_user(
    request: Request,
    user_manager: UserManagerDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[User]:
    """Like get_current_user, but None instead of 401."""
    token = credentials.credentials if credentials else extract_token(request)
    payload = decode_access_token(token) if token else None
    if payload is None:
        return None
    return _load_user(payload, user_manager)


def require_primary_admin(
    current_user: Optional[User] = Depends(get_optional_user),
) -> User:
    """Allow only permanent administrators; temporary admins are refused.

    Raises:
        AccessDeniedError: Rendered as a 403 by the application.
    """
    if current_user is None or not current_user.is_primary_admin:
        raise AccessDeniedError("Unauthorized")
    return current_user


def resolve_roles(request: Request, user: User) -> Set[str]:
    """Roles the caller may act as on this request.

    A temporary admin acts with the permissions of its grant as confirmed by
    the validation gate for this request, never with the token claims. Without
    a confirmed grant it has no roles.
    """
    if not user.is_temp_admin:
        return {user.role}
    grant = getattr(request.state, "temp_admin", None)
    if grant is None or grant.id != user.user_id:
        return set()
    return set(grant.permissions)


def require_roles(*allowed_roles: str) -> Callable:
    """Build a dependency that admits callers holding any of ``allowed_roles``.

    Raises:
        AccessDeniedError: Rendered as a 403 by the application.
    """

    def dependency(request: Request, current_user: User = Depends(get_current_user)) -> User:
        if not set(allowed_roles).intersection(resolve_roles(request, current_user)):
            logger.info(
                "Denied %s to %s (needs one of %s)",
                request.url.path,
                current_user.user_id,
                ", ".join(allowed_roles),
            )
            raise AccessDeniedError("Insufficient role privileges")
        return current_user

    return dependency


@router.post("/login", summary="User login")
def login(
    req: LoginRequest,
    response: Response,
    user_manager: UserManagerDep,
) -> LoginResponse:
    """Login with email and password.

    The token is returned in the body and set as an HTTP-only cookie.

    Raises:
        HTTPException: If the credentials are wrong or the login is disabled.
    """
    user = user_manager.authenticate(req.email, req.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    access_token = create_access_token(
        data=build_token_claims(user),
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE_NAME,
        value=access_token,
        httponly=True,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )
    logger.info("User %s signed in (role=%s)", user.user_id, user.role)
    return LoginResponse(user=PublicUser.from_user(user), token=access_token)


@router.post("/logout", summary="User logout")
def logout(response: Response) -> dict:
    """Clear the session cookies."""
    response.delete_cookie(ACCESS_TOKEN_COOKIE_NAME, path="/")
    response.delete_cookie(REFRESH_TOKEN_COOKIE_NAME, path="/")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse, summary="Current user")
def get_current_user_info(
    current_user: User = Depends(get_current_user),
) -> CurrentUserResponse:
    """Get current authenticated user information."""
    return CurrentUserResponse(user=PublicUser.from_user(current_user))
