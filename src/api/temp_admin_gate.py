"""Request-time validation of temporary admin sessions.

A temporary admin's token can stay cryptographically valid after the grant is
revoked or expires. This middleware closes that gap: every request whose token
carries the ``temp_admin`` claim is checked against the grant store, and an
invalid grant ends the session with a redirect to the sign-in page.
"""

import logging
from typing import Callable, Optional

from fastapi import Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from api.routes.auth import decode_access_token, extract_token
from config import ACCESS_TOKEN_COOKIE_NAME, REFRESH_TOKEN_COOKIE_NAME, SIGN_IN_PATH
from core.database import SessionLocal
from core.dependencies import build_temp_admin_manager
from schemas.temp_admin import ValidationResult

logger = logging.getLogger(__name__)

EXEMPT_PATHS = ("/api/auth/login", "/api/auth/logout", "/api/health")


class TempAdminGateMiddleware(BaseHTTPMiddleware):
    """Signs out temporary admins whose grant is no longer valid."""

    def __init__(self, app, session_factory: Optional[Callable[[], Session]] = None):
        super().__init__(app)
        self.session_factory = session_factory or SessionLocal

    def _validate(self, temp_admin_id: str) -> ValidationResult:
        db = self.session_factory()
        try:
            return build_temp_admin_manager(db).validate_temp_admin(temp_admin_id)
        finally:
            db.close()

    @staticmethod
    def _is_exempt(path: str) -> bool:
        return path.startswith(SIGN_IN_PATH) or path in EXEMPT_PATHS

    @staticmethod
    def _sign_out() -> RedirectResponse:
        response = RedirectResponse(url=SIGN_IN_PATH, status_code=303)
        response.delete_cookie(ACCESS_TOKEN_COOKIE_NAME, path="/")
        response.delete_cookie(REFRESH_TOKEN_COOKIE_NAME, path="/")
        return response

    async def dispatch(self, request: Request, call_next):
        if not self._is_exempt(request.url.path):
            token = extract_token(request)
            claims = decode_access_token(token) if token else None
            if claims and claims.get("temp_admin"):
                result = await run_in_threadpool(self._validate, claims["sub"])
                if not result.is_valid:
                    logger.info(
                        "Signing out temporary admin %s: %s", claims["sub"], result.error
                    )
                    return self._sign_out()
                # Route guards read the confirmed grant, not the token claims
                request.state.temp_admin = result.temp_admin
        return await call_next(request)
