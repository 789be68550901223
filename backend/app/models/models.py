"""
Database models for the test-link service.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    Index,
    CheckConstraint,
    JSON,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .base import Base
from .types import TestContentType


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Admin(Base):
    """Administrator account allowed to author tests and issue links."""

    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Relationships
    sessions = relationship(
        "AdminSession", back_populates="admin", cascade="all, delete-orphan"
    )


class AdminSession(Base):
    """Persisted admin login grant, identified by the session cookie value."""

    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(128), unique=True, index=True, nullable=False)
    admin_id = Column(
        Integer, ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Relationships
    admin = relationship("Admin", back_populates="sessions")


class Test(Base):
    """Authored test. Content is replaced or deleted as a whole, never edited."""

    __tablename__ = "tests"
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    version = Column(String(64), nullable=False)
    content = Column(TestContentType(), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    # Relationships
    sessions = relationship(
        "TestSession",
        back_populates="test",
        cascade="all, delete-orphan",
    )

    __table_args__ = (UniqueConstraint("name", "version", name="uq_tests_name_version"),)


class TestSession(Base):
    """
    One issued access grant for a test.

    `used` flips from False to True exactly once, when the candidate starts
    the test. The session is completed once a TestResult references it.
    """

    __tablename__ = "test_sessions"
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(128), unique=True, index=True, nullable=False)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    candidate_name = Column(String(255), nullable=True)  # Recorded at start
    started_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    # Relationships
    test = relationship("Test", back_populates="sessions")
    result = relationship(
        "TestResult",
        back_populates="session",
        uselist=False,
        cascade="all, delete-orphan",
    )


class TestResult(Base):
    """
    Outcome of a completed attempt. Created once per session, never mutated.

    test_name/test_version are a snapshot taken at submission time; answers
    holds every question id of the test, mapped to an option index or None.
    """

    __tablename__ = "test_results"
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    # Unique: the store rejects a second result for the same session
    session_id = Column(
        Integer,
        ForeignKey("test_sessions.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    user_name = Column(String(255), nullable=False)
    test_name = Column(String(255), nullable=False)
    test_version = Column(String(64), nullable=False)
    answers = Column(JSON, nullable=False)
    score = Column(Integer, nullable=False)
    total_questions = Column(Integer, nullable=False)
    completed_at = Column(
        DateTime(timezone=True), default=_utc_now, nullable=False
    )

    # Relationships
    session = relationship("TestSession", back_populates="result")

    __table_args__ = (
        CheckConstraint("score >= 0", name="ck_test_results_score_non_negative"),
        CheckConstraint(
            "score <= total_questions", name="ck_test_results_score_within_total"
        ),
        Index("ix_test_results_completed_at_desc", completed_at.desc()),
    )
