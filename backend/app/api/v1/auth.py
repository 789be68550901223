"""
Authentication endpoints for admin login and logout.

A successful login creates a persisted admin session and sets its token in
an HttpOnly, SameSite=Strict cookie. Every admin endpoint resolves that
cookie through app.core.auth.get_current_admin.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.admin_sessions import (
    authenticate_admin,
    create_admin_session,
    revoke_admin_session,
    session_lifetime,
)
from app.core.auth import get_current_admin, session_cookie
from app.core.config import settings
from app.core.error_responses import (
    ErrorMessages,
    raise_bad_request,
    raise_unauthorized,
)
from app.models import Admin, get_db
from app.schemas.auth import (
    AdminLogin,
    AdminResponse,
    AdminSessionResponse,
    LogoutResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.ADMIN_SESSION_COOKIE,
        value=token,
        max_age=int(session_lifetime().total_seconds()),
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.ENV == "production",
    )


@router.post("/login", response_model=AdminSessionResponse)
async def login_admin(
    credentials: AdminLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate an admin and start a session.

    Args:
        credentials: Admin email and password
        response: Outgoing response, receives the session cookie
        db: Database session

    Returns:
        The logged-in admin

    Raises:
        400: Email or password missing
        401: Credentials are invalid
    """
    if not credentials.email or not credentials.password:
        raise_bad_request(ErrorMessages.CREDENTIALS_REQUIRED)

    admin = await authenticate_admin(db, credentials.email, credentials.password)
    if admin is None:
        logger.warning("Failed admin login attempt")
        raise_unauthorized(ErrorMessages.INVALID_CREDENTIALS)

    admin_session = await create_admin_session(db, admin)
    _set_session_cookie(response, admin_session.token)

    logger.info(f"Admin {admin.id} logged in", extra={"admin_id": admin.id})
    return AdminSessionResponse(user=AdminResponse(id=admin.id, email=admin.email))


@router.post("/logout", response_model=LogoutResponse)
async def logout_admin(
    response: Response,
    session_token: Optional[str] = Depends(session_cookie),
    db: AsyncSession = Depends(get_db),
):
    """
    End the current admin session, if any, and clear the cookie.

    Always succeeds, so logging out twice is harmless.
    """
    await revoke_admin_session(db, session_token)
    response.delete_cookie(
        key=settings.ADMIN_SESSION_COOKIE,
        path="/",
        httponly=True,
        samesite="strict",
    )
    return LogoutResponse()


@router.get("/me", response_model=AdminSessionResponse)
async def get_me(admin: Admin = Depends(get_current_admin)):
    """
    Return the admin behind the session cookie.

    Raises:
        401: Not authenticated
    """
    return AdminSessionResponse(user=AdminResponse(id=admin.id, email=admin.email))
