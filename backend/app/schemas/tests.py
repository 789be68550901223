"""
Pydantic schemas for test authoring and link issuance.
"""
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.schemas.test_content import CamelModel

# Estimated minutes spent on instructions before the first question
INSTRUCTIONS_MINUTES = 2


class CreateTestRequest(CamelModel):
    """Body of POST /tests.

    `content` is kept as a plain dict here and validated against
    TestContent by the endpoint, so content errors get a domain message.
    """

    name: Optional[str] = Field(None, description="Test name")
    version: Optional[str] = Field(None, description="Test version label")
    content: Optional[Dict[str, Any]] = Field(
        None, description="Test content with a non-empty questions list"
    )


class TestSummary(CamelModel):
    """Test metadata shown in the admin dashboard."""

    __test__ = False

    id: int
    name: str
    version: str
    question_count: int
    estimated_time: int = Field(..., description="Estimated minutes to complete")
    created_at: str
    updated_at: str


class TestListResponse(CamelModel):
    """Response of GET /tests."""

    __test__ = False

    success: bool = True
    tests: List[TestSummary]


class CreatedTest(CamelModel):
    """Identity of a newly created test."""

    id: int
    name: str
    version: str
    created_at: str


class CreateTestResponse(CamelModel):
    """Response of POST /tests."""

    success: bool = True
    test: CreatedTest


class TestDetailResponse(CamelModel):
    """Response of GET /tests/{id}: full content including correct answers."""

    __test__ = False

    success: bool = True
    id: int
    name: str
    version: str
    content: Dict[str, Any]
    created_at: str
    updated_at: str


class DeleteTestResponse(CamelModel):
    """Response of DELETE /tests/{id}."""

    success: bool = True
    message: str = "Test deleted successfully"


class GenerateLinkResponse(CamelModel):
    """Response of POST /tests/{id}/generate-link."""

    success: bool = True
    link: str = Field(..., description="Absolute candidate URL")
    token: str = Field(..., description="Raw link token")
    expires_at: str = Field(..., description="Expiry timestamp (ISO 8601)")


def estimated_minutes(question_count: int) -> int:
    """One minute per question plus time for instructions."""
    return question_count + INSTRUCTIONS_MINUTES
