"""
Store-backed admin sessions.

An admin session is a row in admin_sessions keyed by an opaque random token
that travels in the session cookie. Sessions expire ADMIN_SESSION_HOURS
after login. Expired rows are deleted when someone presents them and by the
periodic sweep in app.services.session_sweeper.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.datetime_utils import expires_after, is_expired, utc_now
from app.core.security import generate_token, verify_password
from app.models import Admin, AdminSession

logger = logging.getLogger(__name__)


def session_lifetime() -> timedelta:
    """How long an admin stays logged in."""
    return timedelta(hours=settings.ADMIN_SESSION_HOURS)


async def authenticate_admin(
    db: AsyncSession, email: str, password: str
) -> Optional[Admin]:
    """
    Check admin credentials.

    Returns:
        The Admin if the email exists and the password matches, None otherwise
    """
    result = await db.execute(select(Admin).where(Admin.email == email.strip().lower()))
    admin = result.scalar_one_or_none()
    if admin is None or not verify_password(password, admin.password_hash):
        return None
    return admin


async def create_admin_session(
    db: AsyncSession, admin: Admin, now: Optional[datetime] = None
) -> AdminSession:
    """Persist a new session for an authenticated admin."""
    admin_session = AdminSession(
        token=generate_token(),
        admin_id=admin.id,
        expires_at=expires_after(session_lifetime(), now),
    )
    db.add(admin_session)
    await db.commit()
    await db.refresh(admin_session)
    logger.info(
        f"Admin session created for admin {admin.id}",
        extra={"admin_id": admin.id},
    )
    return admin_session


async def get_admin_for_token(
    db: AsyncSession, token: Optional[str], now: Optional[datetime] = None
) -> Optional[Admin]:
    """
    Resolve a session cookie value to its admin.

    An expired session is deleted on access.

    Returns:
        The Admin owning a live session, or None
    """
    if not token:
        return None

    result = await db.execute(
        select(AdminSession)
        .options(selectinload(AdminSession.admin))
        .where(AdminSession.token == token)
    )
    admin_session = result.scalar_one_or_none()
    if admin_session is None:
        return None

    if is_expired(admin_session.expires_at, now):
        await db.delete(admin_session)
        await db.commit()
        logger.info(
            f"Expired admin session removed for admin {admin_session.admin_id}",
            extra={"admin_id": admin_session.admin_id},
        )
        return None

    return admin_session.admin


async def revoke_admin_session(db: AsyncSession, token: Optional[str]) -> bool:
    """
    Delete the session behind a cookie value.

    Returns:
        True if a session was deleted
    """
    if not token:
        return False
    result = await db.execute(
        delete(AdminSession)
        .where(AdminSession.token == token)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount > 0


async def sweep_expired_admin_sessions(
    db: AsyncSession, now: Optional[datetime] = None
) -> int:
    """
    Delete every admin session past its expiry.

    Returns:
        Number of sessions deleted
    """
    result = await db.execute(
        delete(AdminSession)
        .where(AdminSession.expires_at <= (now or utc_now()))
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0
