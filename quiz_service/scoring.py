from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy.orm import Session
from .categories import Category, CategoryBreakdown
from .crud import AnswerKey, answer_key
from .errors import EmptySubmissionError


@dataclass(frozen=True)
class Answer:
    question_id: str
    user_answer: int
    time_spent: int = 0


@dataclass
class ScoringResult:
    score: int
    total_questions: int
    correct_question_ids: list[str]
    breakdown: CategoryBreakdown
    graded: list[dict] = field(default_factory=list)

    @property
    def correct_count(self) -> int:
        return len(self.correct_question_ids)


def percent_half_up(part: int, whole: int) -> int:
    """round(part / whole * 100) with .5 rounded up, in integer arithmetic."""
    if whole <= 0:
        raise ValueError("whole must be positive")
    return (200 * part + whole) // (2 * whole)


def score_answers(answers: Sequence[Answer], key: dict[str, AnswerKey]) -> ScoringResult:
    """
    Grades answers against the authoritative key.

    Answers whose question is not in the key still count toward
    total_questions but add nothing to the correct count or to any category.
    """
    if not answers:
        raise EmptySubmissionError()

    breakdown = CategoryBreakdown()
    correct_ids: list[str] = []
    graded: list[dict] = []

    for a in answers:
        entry = {"question_id": a.question_id, "user_answer": a.user_answer, "time_spent": a.time_spent}
        question = key.get(a.question_id)
        if question is None:
            entry["is_correct"] = None
            graded.append(entry)
            continue

        is_correct = question.correct_answer_id == a.user_answer
        entry["is_correct"] = is_correct
        graded.append(entry)

        if is_correct:
            correct_ids.append(a.question_id)
        category = Category.lookup(question.category)
        if category is not None:
            breakdown[category].record(is_correct)

    total = len(answers)
    return ScoringResult(
        score=percent_half_up(len(correct_ids), total),
        total_questions=total,
        correct_question_ids=correct_ids,
        breakdown=breakdown,
        graded=graded,
    )


def score_submission(db: Session, epic_id: str, answers: Sequence[Answer]) -> ScoringResult:
    if not answers:
        raise EmptySubmissionError()
    key = answer_key(db, epic_id, [a.question_id for a in answers])
    return score_answers(answers, key)
