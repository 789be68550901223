"""
Sentry error tracking.

Initialization is a no-op when SENTRY_DSN is empty, and so is every capture
call, which keeps tests and local development free of network traffic.
"""
import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from app.core.config import settings

logger = logging.getLogger(__name__)

_initialized = False


def init_error_tracking() -> bool:
    """
    Initialize the Sentry SDK with FastAPI/Starlette integrations.

    Returns:
        True if Sentry was initialized, False if skipped (no DSN) or failed.

    Note:
        Does not raise exceptions - failures are logged and return False.
    """
    global _initialized

    if not settings.SENTRY_DSN:
        logger.debug("Sentry initialization skipped (DSN not configured)")
        return False

    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENV,
            release=settings.APP_VERSION,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            integrations=[
                LoggingIntegration(level=None, event_level=None),
                FastApiIntegration(transaction_style="endpoint"),
                StarletteIntegration(transaction_style="endpoint"),
            ],
            # Candidate names and admin emails stay out of events
            send_default_pii=False,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
        return False

    _initialized = True
    logger.info(
        f"Sentry initialized for environment '{settings.ENV}' "
        f"with {settings.SENTRY_TRACES_SAMPLE_RATE * 100:.0f}% trace sampling"
    )
    return True


def capture_error(
    exception: BaseException,
    context: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """
    Capture an exception and send it to Sentry.

    Args:
        exception: The exception to capture
        context: Additional context attached under "additional"
        tags: Tags for filtering in Sentry

    Returns:
        Sentry event ID, or None when error tracking is not initialized
    """
    if not _initialized:
        return None

    with sentry_sdk.new_scope() as scope:
        if context:
            scope.set_context("additional", {k: str(v) for k, v in context.items()})
        for key, value in (tags or {}).items():
            scope.set_tag(key, value)
        return sentry_sdk.capture_exception(exception)


def is_initialized() -> bool:
    """Whether init_error_tracking() configured the SDK."""
    return _initialized
