"""
Middleware package for request/response processing.
"""
from app.core.logging_config import redact_path

from .request_logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware", "redact_path"]
