"""Temporary admin routes.

Create, revoke and list are restricted to primary (non-temporary)
administrators. Cleanup is meant for a scheduler and is authorised by the
shared CLEANUP_TOKEN bearer secret instead of a user session.

Every failure responds with ``{"success": false, "error": "..."}``.
"""

import hmac
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

import config
from api.routes.auth import require_primary_admin
from core.dependencies import TempAdminManagerDep
from schemas.temp_admin import (
    CreateTempAdminRequest,
    ErrorKind,
    OperationResult,
    RevokeTempAdminRequest,
)
from schemas.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/temp-admin", tags=["Temp Admin"])

_STATUS_BY_ERROR_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DEPENDENCY: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def result_response(result: OperationResult) -> JSONResponse:
    """Render a manager result, mapping its error kind to a status code."""
    if result.success:
        return JSONResponse(
            content=result.model_dump(mode="json", by_alias=True, exclude_none=True)
        )
    status_code = _STATUS_BY_ERROR_KIND.get(
        result.error_kind, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return error_response(status_code, result.error or "Internal server error")


@router.post("/create", summary="Create a temporary admin")
def create_temp_admin(
    req: CreateTempAdminRequest,
    temp_admin_manager: TempAdminManagerDep,
    current_user: User = Depends(require_primary_admin),
) -> JSONResponse:
    """Issue a time-boxed admin login.

    The generated password, if any, is in the response and nowhere else.
    """
    if not (req.email and req.expires_at and req.permissions and req.created_by and req.reason):
        return error_response(status.HTTP_400_BAD_REQUEST, "Missing required fields")

    logger.info("Admin %s requested temporary admin for %s", current_user.user_id, req.email)
    result = temp_admin_manager.create_temp_admin(
        email=req.email,
        password=req.password,
        expires_at=req.expires_at,
        permissions=req.permissions,
        created_by=req.created_by,
        reason=req.reason,
    )
    return result_response(result)


@router.post("/revoke", summary="Revoke a temporary admin")
def revoke_temp_admin(
    req: RevokeTempAdminRequest,
    temp_admin_manager: TempAdminManagerDep,
    current_user: User = Depends(require_primary_admin),
) -> JSONResponse:
    if not (req.temp_admin_id and req.revoked_by):
        return error_response(status.HTTP_400_BAD_REQUEST, "Missing required fields")

    logger.info(
        "Admin %s requested revocation of temporary admin %s",
        current_user.user_id,
        req.temp_admin_id,
    )
    result = temp_admin_manager.revoke_temp_admin(
        req.temp_admin_id, req.revoked_by, req.reason
    )
    return result_response(result)


@router.get("", summary="List temporary admins")
def list_temp_admins(
    temp_admin_manager: TempAdminManagerDep,
    include_inactive: bool = False,
    current_user: User = Depends(require_primary_admin),
) -> JSONResponse:
    result = temp_admin_manager.list_temp_admins(include_inactive=include_inactive)
    return result_response(result)


@router.post("/cleanup", summary="Revoke expired temporary admins")
def cleanup_expired_temp_admins(
    request: Request,
    temp_admin_manager: TempAdminManagerDep,
) -> JSONResponse:
    """Sweep expired grants. Called by cron with ``Authorization: Bearer <CLEANUP_TOKEN>``."""
    expected_token = config.CLEANUP_TOKEN
    auth_header = request.headers.get("Authorization", "")
    if not expected_token or not hmac.compare_digest(
        auth_header.encode("utf-8"), f"Bearer {expected_token}".encode("utf-8")
    ):
        return error_response(status.HTTP_403_FORBIDDEN, "Unauthorized")

    result = temp_admin_manager.cleanup_expired_temp_admins()
    return result_response(result)
