"""
Admin endpoint listing completed test attempts.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.auth import get_current_admin
from app.core.datetime_utils import to_iso
from app.core.scoring import score_answers
from app.models import Admin, TestResult, TestSession, get_db
from app.schemas.results import ResultListItem

router = APIRouter()


@router.get("", response_model=List[ResultListItem])
async def list_results(
    db: AsyncSession = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    List every result, newest first.

    Scores are re-derived from the stored answers against the test content
    rather than read from the stored score column, using the same scoring
    functions as submission. Name and version are the snapshot taken at
    submission time.
    """
    result = await db.execute(
        select(TestResult)
        .options(selectinload(TestResult.session).selectinload(TestSession.test))
        .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
    )
    items = []
    for test_result in result.scalars().all():
        summary = score_answers(
            test_result.session.test.content.questions, test_result.answers or {}
        )
        items.append(
            ResultListItem(
                id=test_result.id,
                candidate_name=test_result.user_name,
                test_name=test_result.test_name,
                test_version=test_result.test_version,
                score=summary.score,
                total_questions=summary.total_questions,
                percentage=summary.percentage,
                completed_at=to_iso(test_result.completed_at),
            )
        )
    return items
