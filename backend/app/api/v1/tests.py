"""
Admin endpoints for authoring tests and issuing test links.
"""
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_admin
from app.core.config import settings
from app.core.datetime_utils import to_iso
from app.core.error_responses import (
    ErrorMessages,
    first_validation_message,
    raise_bad_request,
    raise_conflict,
    raise_not_found,
)
from app.core.test_links import issue_test_link
from app.models import Admin, Test, get_db
from app.schemas.test_content import TestContent
from app.schemas.tests import (
    CreatedTest,
    CreateTestRequest,
    CreateTestResponse,
    DeleteTestResponse,
    GenerateLinkResponse,
    TestDetailResponse,
    TestListResponse,
    TestSummary,
    estimated_minutes,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def request_origin(request: Request) -> str:
    """Origin used for candidate links: PUBLIC_BASE_URL or the request's own."""
    if settings.PUBLIC_BASE_URL:
        return settings.PUBLIC_BASE_URL
    return f"{request.url.scheme}://{request.url.netloc}"


async def _get_test_or_404(db: AsyncSession, test_id: int) -> Test:
    test = await db.get(Test, test_id)
    if test is None:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
    return test


@router.get("", response_model=TestListResponse)
async def list_tests(
    db: AsyncSession = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    List all tests, newest first, with question count and estimated time.
    """
    result = await db.execute(select(Test).order_by(Test.created_at.desc(), Test.id.desc()))
    tests = result.scalars().all()
    return TestListResponse(
        tests=[
            TestSummary(
                id=test.id,
                name=test.name,
                version=test.version,
                question_count=len(test.content.questions),
                estimated_time=estimated_minutes(len(test.content.questions)),
                created_at=to_iso(test.created_at),
                updated_at=to_iso(test.updated_at),
            )
            for test in tests
        ]
    )


@router.post("", response_model=CreateTestResponse)
async def create_test(
    request: CreateTestRequest,
    db: AsyncSession = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    Create a test from validated content.

    The content's name and version are taken from the request so the stored
    content always describes its own test.

    Raises:
        400: Missing fields or invalid content
        409: A test with this name and version already exists
    """
    name = (request.name or "").strip()
    version = (request.version or "").strip()
    if not name or not version or not request.content:
        raise_bad_request(ErrorMessages.TEST_FIELDS_REQUIRED)

    questions = request.content.get("questions")
    if not isinstance(questions, list) or not questions:
        raise_bad_request(ErrorMessages.QUESTIONS_REQUIRED)

    try:
        content = TestContent.model_validate(
            {**request.content, "name": name, "version": version}
        )
    except ValidationError as e:
        raise_bad_request(
            ErrorMessages.invalid_test_content(first_validation_message(e.errors()))
        )

    existing = await db.execute(
        select(Test.id).where(Test.name == name, Test.version == version)
    )
    if existing.scalar_one_or_none() is not None:
        raise_conflict(ErrorMessages.DUPLICATE_TEST)

    test = Test(name=name, version=version, content=content)
    db.add(test)
    try:
        await db.commit()
    except IntegrityError:
        # Concurrent create with the same name and version
        await db.rollback()
        raise_conflict(ErrorMessages.DUPLICATE_TEST)
    await db.refresh(test)

    logger.info(
        f"Test created: id={test.id}, name={test.name!r}, version={test.version!r}",
        extra={"test_id": test.id, "admin_id": admin.id},
    )
    return CreateTestResponse(
        test=CreatedTest(
            id=test.id,
            name=test.name,
            version=test.version,
            created_at=to_iso(test.created_at),
        )
    )


@router.get("/{test_id}", response_model=TestDetailResponse)
async def get_test(
    test_id: int,
    db: AsyncSession = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    Return a test with its full content, correct answers included.

    Raises:
        404: Test not found
    """
    test = await _get_test_or_404(db, test_id)
    return TestDetailResponse(
        id=test.id,
        name=test.name,
        version=test.version,
        content=test.content.to_storage(),
        created_at=to_iso(test.created_at),
        updated_at=to_iso(test.updated_at),
    )


@router.delete("/{test_id}", response_model=DeleteTestResponse)
async def delete_test(
    test_id: int,
    db: AsyncSession = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    Delete a test together with its sessions and their results.

    Raises:
        404: Test not found
    """
    test = await _get_test_or_404(db, test_id)
    await db.delete(test)
    await db.commit()
    logger.info(
        f"Test deleted: id={test_id}",
        extra={"test_id": test_id, "admin_id": admin.id},
    )
    return DeleteTestResponse()


@router.post("/{test_id}/generate-link", response_model=GenerateLinkResponse)
async def generate_link(
    test_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    Issue a single-use link for a test, valid for TEST_LINK_EXPIRE_DAYS.

    Raises:
        401: Not authenticated
        404: Test not found
    """
    issued = await issue_test_link(db, test_id, request_origin(request))
    return GenerateLinkResponse(
        link=issued.link,
        token=issued.token,
        expires_at=to_iso(issued.expires_at),
    )
