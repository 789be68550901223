"""
Pydantic schemas for the admin results listing.
"""
from pydantic import Field

from app.schemas.test_content import CamelModel


class ResultListItem(CamelModel):
    """One completed attempt, with the score re-derived from stored answers."""

    id: int
    candidate_name: str
    test_name: str = Field(..., description="Test name at submission time")
    test_version: str = Field(..., description="Test version at submission time")
    score: int
    total_questions: int
    percentage: int
    completed_at: str
