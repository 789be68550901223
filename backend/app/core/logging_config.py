"""
Logging setup: human-readable lines in development, JSON in production.

Test link tokens are bearer credentials. Every handler installed here runs
records through RedactTokensFilter, so a token that appears in a path or a
link (including uvicorn's access log) is written as <token>.
"""
import json
import logging
import logging.config
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.config import settings

# Set per request by RequestLoggingMiddleware; copied into JSON entries
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# `extra=` keys promoted to top-level JSON fields
STRUCTURED_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_host",
    "test_id",
    "session_id",
    "admin_id",
    "error_id",
)

# Candidate API paths (/test-session/{token}) and candidate links (/test/{token})
_TOKEN_PATH_RE = re.compile(r"(/test(?:-session)?/)[A-Za-z0-9_\-]+")
TOKEN_PLACEHOLDER = "<token>"


def redact_path(text: str) -> str:
    """Replace the token segment of candidate paths and links with a placeholder."""
    return _TOKEN_PATH_RE.sub(rf"\1{TOKEN_PLACEHOLDER}", text)


class RedactTokensFilter(logging.Filter):
    """Scrub link tokens from the rendered message and from a `path` extra."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_path(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        path = getattr(record, "path", None)
        if isinstance(path, str):
            record.path = redact_path(path)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_context.get()
        if request_id:
            entry["request_id"] = request_id

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                entry[field] = getattr(record, field)

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def build_logging_config(level: str, json_output: bool, debug: bool) -> Dict[str, Any]:
    """
    dictConfig for the application.

    Args:
        level: Root and `app` log level name
        json_output: Use JSONFormatter instead of plain text
        debug: Quieten uvicorn's per-request access log
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact_tokens": {"()": RedactTokensFilter},
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {"()": JSONFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if json_output else "default",
                "filters": ["redact_tokens"],
                "stream": sys.stdout,
            },
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "app": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {
                "level": "WARNING" if debug else "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            # Statement parameters would include tokens and password hashes
            "sqlalchemy.engine": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging() -> None:
    """Apply the logging configuration derived from settings."""
    logging.config.dictConfig(
        build_logging_config(
            level=settings.LOG_LEVEL.upper(),
            json_output=settings.ENV == "production",
            debug=settings.DEBUG,
        )
    )
