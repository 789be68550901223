"""Custom SQLAlchemy types.

TestContentType stores a test's content as JSON while validating it against
app.schemas.test_content.TestContent on the way in and on the way out.
"""

from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import JSON, TypeDecorator

from app.schemas.test_content import TestContent


class InvalidTestContentError(ValueError):
    """Raised when content read from or written to the store fails validation."""


class TestContentType(TypeDecorator):
    """
    A validated JSON column holding TestContent.

    - Bind: accepts a TestContent instance or a plain dict, validates it, and
      stores the camelCase JSON layout
    - Result: validates the stored JSON and returns a TestContent instance

    Usage:
        content = Column(TestContentType(), nullable=False)
    """

    __test__ = False

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Optional[dict]:
        """Validate and serialize content before it reaches the database."""
        if value is None:
            return None
        return _validate(value).to_storage()

    def process_result_value(self, value: Any, dialect) -> Optional[TestContent]:
        """Validate stored content; malformed rows are never returned silently."""
        if value is None:
            return None
        return _validate(value)


def _validate(value: Any) -> TestContent:
    if isinstance(value, TestContent):
        value = value.to_storage()
    try:
        return TestContent.model_validate(value)
    except ValidationError as e:
        raise InvalidTestContentError(f"Invalid test content: {e}") from e
