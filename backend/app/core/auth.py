"""
FastAPI authentication dependencies.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import APIKeyCookie
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.admin_sessions import get_admin_for_token
from app.core.config import settings
from app.core.error_responses import ErrorMessages, raise_unauthorized
from app.models import Admin, get_db

# Session cookie scheme that doesn't fail on a missing cookie, so the 401
# body stays in the application's {"error": ...} format
session_cookie = APIKeyCookie(name=settings.ADMIN_SESSION_COOKIE, auto_error=False)


async def get_current_admin(
    session_token: Optional[str] = Depends(session_cookie),
    db: AsyncSession = Depends(get_db),
) -> Admin:
    """
    Get the admin behind the session cookie.

    Args:
        session_token: Value of the session cookie, if present
        db: Database session

    Returns:
        The authenticated Admin

    Raises:
        UnauthorizedError: 401 if the cookie is missing, unknown or expired
    """
    admin = await get_admin_for_token(db, session_token)
    if admin is None:
        raise_unauthorized(ErrorMessages.NOT_AUTHENTICATED)
    return admin

