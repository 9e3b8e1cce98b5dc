"""Admin console session endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from chatgate.core.admin import AdminConfig, AdminSessionManager
from chatgate.core.exceptions import ConfigurationError, UnauthenticatedError
from ..dependencies import get_admin_manager, get_admin_settings, get_client_ip
from ..schemas.admin import AdminLoginRequest, AdminSessionStatus
from ..schemas.common import SuccessResponse
from ..schemas.errors import ADMIN_ERROR_RESPONSES

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/login",
    response_model=SuccessResponse,
    responses=ADMIN_ERROR_RESPONSES,
    operation_id="adminLogin",
    summary="Log in with the admin password",
)
async def admin_login(
    body: AdminLoginRequest,
    request: Request,
    response: Response,
    manager: AdminSessionManager = Depends(get_admin_manager),
    config: AdminConfig = Depends(get_admin_settings),
):
    """
    Check the shared admin password and issue a session cookie.

    - 500 when ADMIN_PASSWORD is not configured
    - 400 when no password is sent
    - 401 when the password is wrong
    """
    if not config.admin_password:
        raise ConfigurationError("ADMIN_PASSWORD")
    if not body.password:
        raise HTTPException(status_code=400, detail="Password required")
    if not manager.verify_password(body.password):
        logger.warning(f"Failed admin login from {get_client_ip(request)}")
        raise UnauthenticatedError("Invalid credentials")

    session = await manager.create(
        user_agent=request.headers.get("user-agent") or "unknown",
        ip=get_client_ip(request),
    )
    response.set_cookie(
        key=config.admin_session_cookie,
        value=session.token,
        max_age=config.admin_session_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=config.admin_cookie_secure,
    )
    return SuccessResponse(message="Logged in")


@router.post(
    "/logout",
    response_model=SuccessResponse,
    operation_id="adminLogout",
    summary="Revoke the admin session",
)
async def admin_logout(
    request: Request,
    response: Response,
    manager: AdminSessionManager = Depends(get_admin_manager),
    config: AdminConfig = Depends(get_admin_settings),
):
    """Revoke the current admin session (if any) and clear the cookie."""
    await manager.destroy(request.cookies.get(config.admin_session_cookie))
    response.delete_cookie(key=config.admin_session_cookie, path="/")
    return SuccessResponse(message="Logged out")


@router.get(
    "/session",
    response_model=AdminSessionStatus,
    operation_id="getAdminSession",
    summary="Check the admin session cookie",
)
async def admin_session(
    request: Request,
    manager: AdminSessionManager = Depends(get_admin_manager),
    config: AdminConfig = Depends(get_admin_settings),
):
    """Whether the caller's admin cookie names a valid session."""
    valid = await manager.is_valid(request.cookies.get(config.admin_session_cookie))
    return AdminSessionStatus(authenticated=valid)
