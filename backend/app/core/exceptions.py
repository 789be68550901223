"""
Domain exceptions for the test-link lifecycle.

Services raise these instead of HTTPException so they can be used from
scripts and tests without a request context. The application registers a
single handler (see app.main) that renders any TestLinkError as
``{"error": message}`` with the exception's status code.
"""
from typing import Optional

from fastapi import status


class TestLinkError(Exception):
    """Base class for all expected, client-facing failures."""

    # Not a pytest test class despite the name
    __test__ = False

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(TestLinkError):
    """Unknown token, test, or record id."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class ExpiredError(TestLinkError):
    """The test link is past its expiry instant."""

    status_code = status.HTTP_410_GONE
    default_message = "Test link has expired"


class AlreadyUsedError(TestLinkError):
    """The link was already started or already has a result."""

    status_code = status.HTTP_410_GONE
    default_message = "This test link has already been used"


class ConflictError(TestLinkError):
    """The request conflicts with stored state (duplicate result, duplicate test)."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Request conflicts with the current state."


class InvalidInputError(TestLinkError):
    """Missing or malformed request fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class InvalidStateError(TestLinkError):
    """The operation is not allowed in the session's current state."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed in the current state."


class UnauthorizedError(TestLinkError):
    """Admin-only action attempted without a valid admin session."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"
