"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

# Settings and engines are created at import time, so the environment must
# be prepared before anything from app/ is imported.
_TEST_DB = Path(__file__).parent / "test.db"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB}")
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("ENV", "test")

from contextlib import asynccontextmanager  # noqa: E402
from datetime import datetime, timedelta  # noqa: E402
from typing import Any, Callable, Dict, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.datetime_utils import utc_now  # noqa: E402
from app.core.security import generate_token, hash_password  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Admin,
    AdminSession,
    Base,
    Test,
    TestResult,
    TestSession,
    get_db,
)
from app.schemas.test_content import TestContent  # noqa: E402


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests.

    Skips error tracking initialization and the admin session sweeper.
    """
    yield


# Neutralize the production lifespan on the singleton app.
app.router.lifespan_context = _test_lifespan


# Use SQLite for sync tests, with the .db file inside tests/ regardless of
# the working directory.
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Async test engine (aiosqlite) on the same DB file as the sync engine, so
# sync fixtures can create data visible to async code under test.
ASYNC_SQLALCHEMY_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB}"

async_test_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
AsyncTestingSessionLocal = async_sessionmaker(
    async_test_engine, class_=AsyncSession, expire_on_commit=False
)

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse-battery"

# Two questions with correct answers 0 and 1
TWO_QUESTION_CONTENT: Dict[str, Any] = {
    "name": "Python Basics",
    "version": "1.0",
    "questions": [
        {
            "id": 1,
            "question": "Which keyword defines a function?",
            "options": ["def", "func", "fn", "lambda"],
            "correctAnswer": 0,
        },
        {
            "id": 2,
            "question": "What does len([1, 2, 3]) return?",
            "options": ["2", "3", "4", "An error"],
            "correctAnswer": 1,
        },
    ],
}


def make_content(name: str = "Python Basics", version: str = "1.0", count: int = 2):
    """Build valid content with `count` questions; question i has answer i % 4."""
    return {
        "name": name,
        "version": version,
        "questions": [
            {
                "id": i + 1,
                "question": f"Question {i + 1}?",
                "options": ["A", "B", "C", "D"],
                "correctAnswer": i % 4,
            }
            for i in range(count)
        ],
    }


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
async def async_db(db_session):
    """
    Async session on the test database, for calling services directly.
    """
    async with AsyncTestingSessionLocal() as session:
        yield session


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database dependency override.

    Overrides get_db (async) to use a test async session backed by
    the same test.db file where db_session creates data.
    """

    async def override_get_db():
        async with AsyncTestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db_session):
    """
    Create an admin account in the database.
    """
    account = Admin(email=ADMIN_EMAIL, password_hash=hash_password(ADMIN_PASSWORD))
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def admin_session_token(db_session, admin):
    """
    A live admin session token, as the login endpoint would issue.
    """
    token = generate_token()
    db_session.add(
        AdminSession(
            token=token,
            admin_id=admin.id,
            expires_at=utc_now() + timedelta(hours=settings.ADMIN_SESSION_HOURS),
        )
    )
    db_session.commit()
    return token


@pytest.fixture
def admin_client(client, admin_session_token):
    """
    Test client carrying a valid admin session cookie.
    """
    client.cookies.set(settings.ADMIN_SESSION_COOKIE, admin_session_token)
    return client


@pytest.fixture
def sample_test(db_session):
    """
    A test with two questions whose correct answers are 0 and 1.
    """
    test = Test(
        name=TWO_QUESTION_CONTENT["name"],
        version=TWO_QUESTION_CONTENT["version"],
        content=TestContent.model_validate(TWO_QUESTION_CONTENT),
    )
    db_session.add(test)
    db_session.commit()
    db_session.refresh(test)
    return test


@pytest.fixture
def make_session(db_session, sample_test) -> Callable[..., TestSession]:
    """
    Factory for test sessions of sample_test in a given state.

    Args (of the returned factory):
        used: Whether the link has been started
        expires_at: Expiry instant, defaults to seven days from now
        with_result: Attach a TestResult (implies used=True)
    """

    def _make(
        used: bool = False,
        expires_at: Optional[datetime] = None,
        with_result: bool = False,
        token: Optional[str] = None,
    ) -> TestSession:
        session = TestSession(
            token=token or generate_token(),
            test_id=sample_test.id,
            expires_at=expires_at or utc_now() + timedelta(days=7),
            used=used or with_result,
            candidate_name="Ada" if (used or with_result) else None,
        )
        db_session.add(session)
        db_session.commit()
        db_session.refresh(session)

        if with_result:
            db_session.add(
                TestResult(
                    session_id=session.id,
                    user_name="Ada",
                    test_name=sample_test.name,
                    test_version=sample_test.version,
                    answers={"1": 0, "2": 1},
                    score=2,
                    total_questions=2,
                )
            )
            db_session.commit()
            db_session.refresh(session)
        return session

    return _make


@pytest.fixture
def issued_session(make_session) -> TestSession:
    """
    A fresh, unused, unexpired link for sample_test.
    """
    return make_session()


@pytest.fixture
def started_session(make_session) -> TestSession:
    """
    A link that has been started but not submitted.
    """
    return make_session(used=True)
