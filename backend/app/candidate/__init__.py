"""
Candidate-side test taking: timed question engine, its asyncio driver, and
an HTTP client for the candidate endpoints.
"""
from .client import TestLinkClientError, TestSessionClient, parse_test_link
from .engine import InvalidTransitionError, Phase, TimedQuestionEngine
from .runner import TimedTestRunner

__all__ = [
    "TestLinkClientError",
    "TestSessionClient",
    "parse_test_link",
    "InvalidTransitionError",
    "Phase",
    "TimedQuestionEngine",
    "TimedTestRunner",
]
