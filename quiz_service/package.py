import logging
import random
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session
from epic_service.crud import get_epic
from epic_service.models import Epic
from .blocks import block_summary, resolve_block
from .categories import Category, Difficulty
from .crud import get_block, get_questions
from .errors import BlockNotFoundError, EpicNotFoundError, EpicUnavailableError
from .models import Question, QuizBlock
from .sampling import MIN_VIABLE_SAMPLE, SampleFilters, sample_question_ids
from .schemas import EpicSummaryOut, QuizPackageOut, QuizQuestionOut

logger = logging.getLogger("quiz-service")


@dataclass(frozen=True)
class PackageRequest:
    count: int = 10
    difficulty: Optional[Difficulty] = None  # None = mixed
    category: Optional[Category] = None      # None = mixed
    kanda: Optional[str] = None
    sarga: Optional[int] = None
    block_id: Optional[int] = None


@dataclass
class GeneratedPackage:
    package: QuizPackageOut
    epic: Epic
    block: Optional[QuizBlock] = None


def project_question(q: Question) -> QuizQuestionOut:
    return QuizQuestionOut(
        id=q.id,
        text=q.question_text,
        options=q.options,
        correct_answer_id=q.correct_answer_id,
        basic_explanation=q.basic_explanation,
        category=q.category,
    )


def build_quiz_package(
    db: Session,
    epic: Epic,
    question_ids: list[str],
    block: Optional[QuizBlock] = None,
) -> QuizPackageOut:
    questions = get_questions(db, question_ids)
    return QuizPackageOut(
        quiz_id=str(uuid.uuid4()),
        epic=EpicSummaryOut(id=epic.id, title=epic.title, language=epic.language or "sanskrit"),
        block_info=block_summary(block) if block is not None else None,
        questions=[project_question(q) for q in questions],
    )


def load_available_epic(db: Session, epic_id: str) -> Epic:
    epic = get_epic(db, epic_id)
    if epic is None:
        raise EpicNotFoundError(epic_id)
    if not epic.is_available:
        raise EpicUnavailableError(epic_id)
    return epic


def load_available_block(db: Session, block_id: int, epic_id: Optional[str] = None) -> QuizBlock:
    block = get_block(db, block_id)
    if block is None or not block.is_available:
        raise BlockNotFoundError(block_id)
    if epic_id is not None and block.epic_id != epic_id:
        raise BlockNotFoundError(block_id)
    return block


def generate_quiz_package(
    db: Session,
    epic_id: str,
    request: PackageRequest,
    *,
    min_viable: int = MIN_VIABLE_SAMPLE,
    rng: Optional[random.Random] = None,
) -> GeneratedPackage:
    epic = load_available_epic(db, epic_id)

    block_id = resolve_block(db, epic_id, block_id=request.block_id, difficulty=request.difficulty)
    block = load_available_block(db, block_id, epic_id) if block_id is not None else None

    filters = SampleFilters(
        block_id=block_id,
        kanda=request.kanda,
        sarga=request.sarga,
        difficulty=request.difficulty,
        category=request.category,
    )
    question_ids = sample_question_ids(db, epic_id, request.count, filters, min_viable=min_viable, rng=rng)
    package = build_quiz_package(db, epic, question_ids, block)

    logger.info(
        "Generated quiz %s for epic %s: %s questions (block=%s difficulty=%s category=%s)",
        package.quiz_id, epic_id, len(package.questions), block_id,
        request.difficulty.value if request.difficulty else "mixed",
        request.category.value if request.category else "mixed",
    )
    return GeneratedPackage(package=package, epic=epic, block=block)
