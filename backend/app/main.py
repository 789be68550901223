"""
FastAPI application for single-use test links.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.error_responses import (
    ErrorMessages,
    error_body,
    first_validation_message,
)
from app.core.error_tracking import capture_error, init_error_tracking
from app.core.exceptions import TestLinkError
from app.core.logging_config import setup_logging
from app.middleware import RequestLoggingMiddleware, redact_path
from app.services.session_sweeper import SessionSweeper

setup_logging()

logger = logging.getLogger(__name__)

API_DESCRIPTION = (
    "**TestLink API** - timed multiple-choice tests delivered through "
    "single-use links.\n\n"
    "* Admin authentication with cookie sessions\n"
    "* Test authoring and single-use link issuance\n"
    "* The candidate flow: open link, start, submit\n"
    "* Results listing\n\n"
    "## Authentication\n\n"
    "Admin endpoints require the session cookie set by "
    f"`{settings.API_PREFIX}/auth/login`. Candidate endpoints are "
    "authorized by the link token alone."
)

OPENAPI_TAGS = [
    {"name": "health", "description": "Liveness and database reachability"},
    {"name": "auth", "description": "Admin login, logout and session check"},
    {
        "name": "test-session",
        "description": "Candidate endpoints: open a link, start the test, submit answers",
    },
    {"name": "tests", "description": "Admin test authoring and link issuance"},
    {"name": "results", "description": "Admin listing of completed attempts"},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Start error tracking and the admin session sweeper; stop the sweeper on exit.
    """
    init_error_tracking()

    sweeper = None
    if settings.SESSION_SWEEP_INTERVAL_MINUTES > 0:
        sweeper = SessionSweeper(
            interval_seconds=settings.SESSION_SWEEP_INTERVAL_MINUTES * 60
        )
        sweeper.start()
    app.state.session_sweeper = sweeper

    yield

    if sweeper is not None:
        await sweeper.stop()
    logger.info("Application shutting down")


async def handle_domain_error(request: Request, exc: TestLinkError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def handle_http_error(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Unknown routes and wrong methods use the same {"error": ...} shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies are a 400 carrying the first validation message."""
    message = first_validation_message(exc.errors())
    logger.info(
        f"Request validation failed: {message}",
        extra={"method": request.method, "path": redact_path(request.url.path)},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message)
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """
    Log and report an unhandled exception, answering with a generic 500.

    The response carries an errorId that also appears in the log entry and
    the error tracking event, so a client report can be matched to both.
    """
    error_id = str(uuid.uuid4())
    logger.exception(
        f"Unhandled exception [error_id={error_id}]: {exc}",
        extra={"error_id": error_id},
    )
    capture_error(
        exc,
        context={
            "path": redact_path(request.url.path),
            "method": request.method,
            "error_id": error_id,
        },
        tags={"error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(ErrorMessages.INTERNAL_SERVER_ERROR, error_id),
    )


def create_application() -> FastAPI:
    """
    Build the application: middleware, routers and exception handlers.
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=API_DESCRIPTION,
        lifespan=lifespan,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        openapi_tags=OPENAPI_TAGS,
    )

    # Credentials are required for the admin session cookie
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    application.add_middleware(RequestLoggingMiddleware)

    application.include_router(api_router, prefix=settings.API_PREFIX)

    application.add_exception_handler(TestLinkError, handle_domain_error)
    application.add_exception_handler(StarletteHTTPException, handle_http_error)
    application.add_exception_handler(RequestValidationError, handle_validation_error)
    application.add_exception_handler(Exception, handle_unexpected_error)

    @application.get("/", include_in_schema=False)
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": f"{settings.API_PREFIX}/docs",
        }

    return application


app = create_application()
