"""
Models package for the test-link backend.
"""
from .base import (
    Base,
    engine,
    SessionLocal,
    async_engine,
    AsyncSessionLocal,
    get_db,
)
from .models import (
    Admin,
    AdminSession,
    Test,
    TestSession,
    TestResult,
)
from .types import InvalidTestContentError, TestContentType

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "async_engine",
    "AsyncSessionLocal",
    "get_db",
    "Admin",
    "AdminSession",
    "Test",
    "TestSession",
    "TestResult",
    "InvalidTestContentError",
    "TestContentType",
]
