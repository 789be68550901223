"""
Standardized error response messages and builders.

This module keeps every user-facing error message in one place and provides
small builders that raise the matching domain exception from
app.core.exceptions. The exception handlers in app.main turn those into the
``{"error": message}`` body clients receive.

Error Message Format Guidelines:
- Messages are shown verbatim to candidates and admins
- Never include tokens, hashes, or stack traces
- Server errors always use INTERNAL_SERVER_ERROR

Usage:
    from app.core.error_responses import ErrorMessages, raise_not_found

    if not test:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
"""

from typing import Any, Dict, NoReturn, Optional, Sequence

from app.core.exceptions import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
)


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    NOT_AUTHENTICATED = "Not authenticated"
    INVALID_CREDENTIALS = "Invalid email or password"

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    INVALID_TEST_LINK = "Invalid test link"
    TEST_NOT_FOUND = "Test not found"

    # ==========================================================================
    # Gone Errors (410)
    # ==========================================================================
    TEST_LINK_EXPIRED = "Test link has expired"
    TEST_LINK_ALREADY_USED = "This test link has already been used"

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    TEST_ALREADY_COMPLETED = "This test has already been completed"
    DUPLICATE_TEST = "A test with this name and version already exists"

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    USER_NAME_REQUIRED = "User name is required"
    ANSWERS_REQUIRED = "Answers are required"
    CREDENTIALS_REQUIRED = "Email and password are required"
    TEST_FIELDS_REQUIRED = "Name, version, and content are required"
    QUESTIONS_REQUIRED = "At least one question is required"
    SESSION_NOT_STARTED = "Test session was not properly started"

    # ==========================================================================
    # Server Errors (500)
    # ==========================================================================
    INTERNAL_SERVER_ERROR = "Internal server error"

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def unknown_question_ids(question_ids: set) -> str:
        """Message when submitted answers reference questions not in the test."""
        ids_str = ", ".join(str(qid) for qid in sorted(question_ids, key=str))
        return f"Answers reference unknown questions: {ids_str}"

    @staticmethod
    def invalid_answer_value(question_id: int) -> str:
        """Message when an answer is neither null nor an option index."""
        return (
            f"Answer for question {question_id} must be null or an option index "
            "between 0 and 3"
        )

    @staticmethod
    def invalid_test_content(detail: str) -> str:
        """Message when authored test content fails validation."""
        return f"Invalid test content: {detail}"


# ==============================================================================
# Builders
# ==============================================================================


def error_body(message: str, error_id: Optional[str] = None) -> Dict[str, Any]:
    """Build the JSON body used for every error response."""
    body: Dict[str, Any] = {"error": message}
    if error_id:
        body["errorId"] = error_id
    return body


def first_validation_message(errors: Sequence[Dict[str, Any]]) -> str:
    """
    Render the first pydantic error as a single human-readable message.

    Args:
        errors: Output of ValidationError.errors() or RequestValidationError.errors()

    Returns:
        "field: message" for field errors, the bare message otherwise
    """
    if not errors:
        return "Invalid request"
    error = errors[0]
    # Drop the "body" prefix FastAPI adds to request body locations
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    message = str(error.get("msg", "Invalid request"))
    return f"{'.'.join(loc)}: {message}" if loc else message


def raise_bad_request(detail: str) -> NoReturn:
    """Raise a 400 for malformed or missing input."""
    raise InvalidInputError(detail)


def raise_invalid_state(detail: str) -> NoReturn:
    """Raise a 400 for operations not allowed in the current session state."""
    raise InvalidStateError(detail)


def raise_unauthorized(detail: str = ErrorMessages.NOT_AUTHENTICATED) -> NoReturn:
    """Raise a 401 for admin-only actions without a valid session."""
    raise UnauthorizedError(detail)


def raise_not_found(detail: str) -> NoReturn:
    """Raise a 404 when a token, test, or record does not exist."""
    raise NotFoundError(detail)


def raise_expired(detail: str = ErrorMessages.TEST_LINK_EXPIRED) -> NoReturn:
    """Raise a 410 for a link past its expiry instant."""
    raise ExpiredError(detail)


def raise_already_used(detail: str = ErrorMessages.TEST_LINK_ALREADY_USED) -> NoReturn:
    """Raise a 410 for a link that has been consumed."""
    raise AlreadyUsedError(detail)


def raise_conflict(detail: str) -> NoReturn:
    """Raise a 409 when the request conflicts with stored state."""
    raise ConflictError(detail)
