"""
Periodic removal of expired admin sessions.

Expired sessions are already rejected (and deleted) when presented, so the
sweep only keeps the admin_sessions table from accumulating rows for
sessions nobody presents again. The sweeper runs as an asyncio task started
from the application lifespan and is cancelled on shutdown.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.admin_sessions import sweep_expired_admin_sessions
from app.models import AsyncSessionLocal

logger = logging.getLogger(__name__)


async def run_sweep(
    session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
) -> int:
    """
    Delete expired admin sessions once, in a fresh database session.

    Returns:
        Number of sessions deleted
    """
    async with session_factory() as db:
        deleted = await sweep_expired_admin_sessions(db)
    if deleted:
        logger.info(f"Swept {deleted} expired admin session(s)")
    else:
        logger.debug("Admin session sweep found nothing to delete")
    return deleted


class SessionSweeper:
    """
    Background task that sweeps expired admin sessions at a fixed interval.

    Usage:
        sweeper = SessionSweeper(interval_seconds=3600)
        sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(
        self,
        interval_seconds: float,
        sweep: Optional[Callable[[], Awaitable[int]]] = None,
        session_factory: Optional[async_sessionmaker] = None,
    ):
        self.interval_seconds = interval_seconds
        self._session_factory = session_factory or AsyncSessionLocal
        self._sweep = sweep or (lambda: run_sweep(self._session_factory))
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start sweeping. Must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="admin-session-sweeper")
        logger.info(
            f"Admin session sweeper started (interval={self.interval_seconds:.0f}s)"
        )

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Admin session sweeper stopped")

    async def _loop(self) -> None:
        while True:
            try:
                await self._sweep()
            except asyncio.CancelledError:
                raise
            except Exception:
                # A failed sweep is retried at the next interval
                logger.exception("Admin session sweep failed")
            await asyncio.sleep(self.interval_seconds)
