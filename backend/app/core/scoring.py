"""
Score calculation for submitted answers.

Scores are always derived from the full answer map against the test's
canonical correct answers, never taken from the client. The same functions
are used at submission time and when the results listing re-derives scores
from stored answers, so both always agree.

Answer maps are keyed by question id. Stored maps come back from JSON with
string keys, so lookups accept either the string or the integer form.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Mapping, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class ScorableQuestion(Protocol):
    """Anything with a question id and the index of its correct option."""

    id: int
    correct_answer: int


@dataclass(frozen=True)
class ScoreSummary:
    """Outcome of scoring one submission."""

    score: int
    total_questions: int
    percentage: int


def lookup_answer(answers: Mapping, question_id: int) -> Optional[object]:
    """Return the submitted answer for a question, or None if absent."""
    key = str(question_id)
    if key in answers:
        return answers[key]
    return answers.get(question_id)


def is_correct(answer: Optional[object], correct_answer: int) -> bool:
    """
    Strict, type-exact comparison of an answer with the correct option.

    None never matches (not even option 0) and booleans never match, even
    though True == 1 in Python.
    """
    return type(answer) is int and answer == correct_answer


def calculate_score(questions: Sequence[ScorableQuestion], answers: Mapping) -> int:
    """
    Count the questions whose submitted answer equals the correct option.

    Missing and null answers count as incorrect; there is no partial credit.

    Args:
        questions: Questions with `id` and `correct_answer`
        answers: Mapping of question id to selected option index or None

    Returns:
        Number of correctly answered questions
    """
    return sum(
        1
        for question in questions
        if is_correct(lookup_answer(answers, question.id), question.correct_answer)
    )


def calculate_percentage(score: int, total_questions: int) -> int:
    """
    Percentage of correct answers, rounded half-up to a whole number.

    Python's round() uses banker's rounding, so 12.5 would become 12; half-up
    gives 13.

    Args:
        score: Number of correct answers
        total_questions: Number of questions in the test

    Returns:
        Integer percentage in [0, 100]; 0 when the test has no questions
    """
    if total_questions <= 0:
        return 0
    ratio = Decimal(score) * 100 / Decimal(total_questions)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def complete_answers(
    question_ids: Iterable[int], answers: Mapping
) -> Dict[str, Optional[int]]:
    """
    Build the answer map that gets persisted: one entry per question.

    Questions without a submitted answer are recorded as None so the stored
    map is complete and scoring can be re-derived from it later.
    """
    completed: Dict[str, Optional[int]] = {}
    for question_id in question_ids:
        answer = lookup_answer(answers, question_id)
        completed[str(question_id)] = answer if type(answer) is int else None
    return completed


def score_answers(questions: Sequence[ScorableQuestion], answers: Mapping) -> ScoreSummary:
    """
    Score a submission.

    Args:
        questions: Questions with `id` and `correct_answer`
        answers: Mapping of question id to selected option index or None

    Returns:
        ScoreSummary with score, total and rounded percentage
    """
    score = calculate_score(questions, answers)
    total = len(questions)
    summary = ScoreSummary(
        score=score,
        total_questions=total,
        percentage=calculate_percentage(score, total),
    )
    logger.debug(
        f"Scored submission: {summary.score}/{summary.total_questions} "
        f"({summary.percentage}%)"
    )
    return summary
