"""
Access logging for the API with per-request correlation ids.

Every request gets an X-Request-ID (taken from the caller or generated) that
is echoed on the response and attached to JSON log entries. Candidate paths
carry the link token, so the path is redacted before it is logged.
"""
import logging
import time
import uuid
from typing import Any, Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging_config import redact_path, request_id_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Bodies of these paths contain credentials
_PRIVATE_BODY_PATHS = ("/auth/login",)
_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def _log_outcome(status_code: int, fields: Dict[str, Any]) -> None:
    if status_code >= 500:
        logger.error("Server error response", extra=fields)
    elif status_code >= 400:
        logger.warning("Client error response", extra=fields)
    else:
        logger.info("Request completed", extra=fields)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log one line when a request arrives and one when its response leaves.

    Request bodies are logged at DEBUG only, truncated, and never for login.
    """

    body_preview_limit = 2048

    def __init__(self, app, log_request_body: bool = True):
        super().__init__(app)
        self.log_request_body = log_request_body

    def _wants_body(self, method: str, path: str) -> bool:
        return (
            self.log_request_body
            and method in _BODY_METHODS
            and logger.isEnabledFor(logging.DEBUG)
            and not path.endswith(_PRIVATE_BODY_PATHS)
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request_id_context.set(request_id)
        started = time.perf_counter()

        fields: Dict[str, Any] = {
            "method": request.method,
            "path": redact_path(request.url.path),
            "client_host": request.client.host if request.client else "unknown",
        }

        if self._wants_body(request.method, fields["path"]):
            body = await request.body()
            if body:
                logger.debug(
                    f"Request body: {body[: self.body_preview_limit]!r}",
                    extra={"method": fields["method"], "path": fields["path"]},
                )

        logger.info("Incoming request", extra=fields)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        fields["status_code"] = response.status_code
        fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        _log_outcome(response.status_code, fields)
        return response
