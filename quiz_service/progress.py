"""
Progress aggregation.

A submission writes one QuizSession and, for a registered caller, merges the
attempt into the caller's UserProgress row for the epic. Both writes go
through the session handle passed in and are committed (or rolled back)
together by the caller's `shared.database.transaction` block; nothing here
commits.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from .categories import Category, CategoryBreakdown, CategoryTally
from .crud import get_progress
from .feedback import category_strengths
from .models import QuizSession, UserProgress
from .schemas import ProgressOut
from .scoring import ScoringResult, percent_half_up

logger = logging.getLogger("quiz-service")

# Buckets the legacy merge adds on update; themes and culture were left untouched there.
LEGACY_MERGED_CATEGORIES = (Category.CHARACTERS, Category.EVENTS)


@dataclass
class AttemptRecord:
    session: QuizSession
    progress: Optional[UserProgress] = None


def progress_breakdown(progress: UserProgress) -> CategoryBreakdown:
    return CategoryBreakdown.from_dict({
        c.value: {
            "correct": getattr(progress, f"{c.value}_correct") or 0,
            "total": getattr(progress, f"{c.value}_total") or 0,
        }
        for c in Category
    })


def _add_tally(progress: UserProgress, category: Category, tally: CategoryTally) -> None:
    merged = progress_breakdown(progress)[category] + tally
    setattr(progress, f"{category.value}_correct", merged.correct)
    setattr(progress, f"{category.value}_total", merged.total)


def insert_quiz_session(
    tx: Session,
    *,
    scoring: ScoringResult,
    epic_id: str,
    user_id: Optional[str],
    quiz_id: str,
    time_spent: int,
    device_type: Optional[str],
    app_version: Optional[str],
    now: datetime,
) -> QuizSession:
    session = QuizSession(
        quiz_id=quiz_id,
        user_id=user_id,
        epic_id=epic_id,
        answers_json=json.dumps(scoring.graded),
        score=scoring.score,
        total_questions=scoring.total_questions,
        correct_answers=scoring.correct_count,
        time_spent=time_spent,
        device_type=device_type,
        app_version=app_version,
        completed_at=now,
    )
    tx.add(session)
    tx.flush()
    return session


def _new_progress(user_id: str, epic_id: str, scoring: ScoringResult, now: datetime) -> UserProgress:
    progress = UserProgress(
        user_id=user_id,
        epic_id=epic_id,
        quizzes_completed=1,
        total_questions_answered=scoring.total_questions,
        correct_answers=scoring.correct_count,
        last_quiz_at=now,
        created_at=now,
        updated_at=now,
    )
    # first attempt stores every bucket, in both merge modes
    for category, tally in scoring.breakdown.items():
        setattr(progress, f"{category.value}_correct", tally.correct)
        setattr(progress, f"{category.value}_total", tally.total)
    return progress


def merge_attempt(
    progress: UserProgress,
    scoring: ScoringResult,
    now: datetime,
    merge_all_categories: bool = True,
) -> UserProgress:
    progress.quizzes_completed = (progress.quizzes_completed or 0) + 1
    progress.total_questions_answered = (progress.total_questions_answered or 0) + scoring.total_questions
    progress.correct_answers = (progress.correct_answers or 0) + scoring.correct_count

    categories = tuple(Category) if merge_all_categories else LEGACY_MERGED_CATEGORIES
    for category in categories:
        _add_tally(progress, category, scoring.breakdown[category])

    progress.last_quiz_at = now
    progress.updated_at = now
    return progress


def upsert_user_progress(
    tx: Session,
    *,
    user_id: str,
    epic_id: str,
    scoring: ScoringResult,
    now: datetime,
    merge_all_categories: bool = True,
) -> UserProgress:
    progress = get_progress(tx, user_id, epic_id, for_update=True)
    if progress is None:
        try:
            with tx.begin_nested():
                progress = _new_progress(user_id, epic_id, scoring, now)
                tx.add(progress)
            return progress
        except IntegrityError:
            # another submission created the row first; fold into it instead
            logger.info("Progress row for user %s epic %s appeared concurrently, merging", user_id, epic_id)
            progress = get_progress(tx, user_id, epic_id, for_update=True)
            if progress is None:
                raise

    merge_attempt(progress, scoring, now, merge_all_categories)
    tx.flush()
    return progress


def record_attempt(
    tx: Session,
    *,
    scoring: ScoringResult,
    epic_id: str,
    user_id: Optional[str],
    quiz_id: str = "",
    time_spent: int = 0,
    device_type: Optional[str] = None,
    app_version: Optional[str] = None,
    merge_all_categories: bool = True,
    now: Optional[datetime] = None,
) -> AttemptRecord:
    """
    Writes the session row and, when user_id is set, the progress upsert.
    Must run inside a transaction on `tx`; a failure in either write leaves
    neither behind once the caller rolls back.
    """
    now = now or datetime.now(timezone.utc)

    session = insert_quiz_session(
        tx,
        scoring=scoring,
        epic_id=epic_id,
        user_id=user_id,
        quiz_id=quiz_id,
        time_spent=time_spent,
        device_type=device_type,
        app_version=app_version,
        now=now,
    )

    progress = None
    if user_id:
        progress = upsert_user_progress(
            tx,
            user_id=user_id,
            epic_id=epic_id,
            scoring=scoring,
            now=now,
            merge_all_categories=merge_all_categories,
        )

    logger.info(
        "Recorded session %s for epic %s user=%s score=%s/%s",
        session.id, epic_id, user_id or "anonymous", scoring.correct_count, scoring.total_questions,
    )
    return AttemptRecord(session=session, progress=progress)


def summarize_progress(progress: UserProgress) -> ProgressOut:
    breakdown = progress_breakdown(progress)
    answered = progress.total_questions_answered or 0
    return ProgressOut(
        epic_id=progress.epic_id,
        total_quizzes=progress.quizzes_completed,
        total_questions_answered=answered,
        correct_answers=progress.correct_answers,
        average_score=percent_half_up(progress.correct_answers, answered) if answered else 0,
        category_scores=breakdown.as_dict(),
        category_strengths=category_strengths(breakdown),
        last_quiz_at=progress.last_quiz_at,
    )
