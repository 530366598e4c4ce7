import logging
import math
from collections import Counter
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from shared.config import Settings
from shared.database import db_dependency, transaction
from shared.responses import envelope, utc_now_iso
from epic_service.crud import get_epic
from .blocks import available_blocks, describe_block, recommend_block
from .categories import Category, Difficulty
from .crud import block_question_counts, chapter_questions, get_progress, list_sessions
from .errors import EpicNotFoundError, ProgressNotFoundError, SubmissionFailedError
from .feedback import (
    efficiency_rating, encouragement, feedback_message, next_steps, performance_level,
)
from .package import (
    GeneratedPackage, PackageRequest, generate_quiz_package, load_available_block, load_available_epic, project_question,
)
from .progress import record_attempt, summarize_progress
from .schemas import (
    EPIC_ID_PATTERN, MAX_QUESTION_COUNT,
    CategoryParam, DifficultyParam,
    FeedbackOut, QuizSessionOut, SubmitQuizIn, SubmitQuizOut, TimeAnalysisOut,
)
from .scoring import Answer, score_submission

logger = logging.getLogger("quiz-service")

CACHE_HEADERS = {"Cache-Control": "public, max-age=3600"}


def current_user_id(request: Request) -> Optional[str]:
    # set by the user-context middleware from the gateway's X-User-ID header
    user = getattr(request.state, "user", None)
    sub = user.get("sub") if isinstance(user, dict) else None
    return str(sub) if sub else None


def _package_meta(generated: GeneratedPackage, difficulty: str, category: str) -> dict:
    questions = generated.package.questions
    meta = {
        "epic": {
            "id": generated.epic.id,
            "title": generated.epic.title,
            "language": generated.epic.language,
            "culture": generated.epic.culture,
        },
        "quiz_info": {
            "question_count": len(questions),
            "estimated_time_minutes": math.ceil(len(questions) * 1.5),
            "difficulty_requested": difficulty,
            "category_requested": category,
            "generated_at": utc_now_iso(),
            "cache_duration_hours": 24,
        },
        "categories_distribution": dict(Counter(q.category for q in questions)),
    }
    if generated.block is not None:
        b = generated.block
        meta["block"] = {
            "id": b.id,
            "name": b.block_name,
            "difficulty": b.difficulty_level,
            "phase": b.phase,
            "narrative_summary": b.narrative_summary,
            "learning_objectives": b.learning_objectives,
            "sarga_range": f"{b.start_sarga}-{b.end_sarga}",
        }
    return meta


def _set_cache_headers(response: Response, quiz_id: str) -> None:
    for k, v in CACHE_HEADERS.items():
        response.headers[k] = v
    response.headers["ETag"] = f'"{quiz_id}"'


def build_router(SessionLocal, settings: Settings):
    router = APIRouter()
    get_db = db_dependency(SessionLocal)

    def _generate(db: Session, epic_id: str, request: PackageRequest) -> GeneratedPackage:
        return generate_quiz_package(db, epic_id, request, min_viable=settings.min_viable_sample)

    @router.get("")
    def get_quiz(
        response: Response,
        epic: str = Query(pattern=EPIC_ID_PATTERN, min_length=3, max_length=50),
        count: Optional[int] = Query(default=None, ge=1, le=MAX_QUESTION_COUNT),
        difficulty: DifficultyParam = Query(default="mixed"),
        category: CategoryParam = Query(default="mixed"),
        kanda: Optional[str] = Query(default=None, min_length=1, max_length=50),
        sarga: Optional[int] = Query(default=None, ge=1),
        block_id: Optional[int] = Query(default=None, alias="blockId", ge=1),
        db: Session = Depends(get_db),
    ):
        if sarga is not None and not kanda:
            raise HTTPException(400, "sarga requires kanda")

        generated = _generate(db, epic, PackageRequest(
            count=count or settings.default_question_count,
            difficulty=Difficulty.parse(difficulty),
            category=Category.parse(category),
            kanda=kanda,
            sarga=sarga,
            block_id=block_id,
        ))
        _set_cache_headers(response, generated.package.quiz_id)
        return envelope(generated.package.model_dump(), meta=_package_meta(generated, difficulty, category))

    @router.get("/chapter/{epic_id}/{kanda}/{sarga}")
    def get_chapter_quiz(
        response: Response,
        epic_id: str = Path(pattern=EPIC_ID_PATTERN, max_length=50),
        kanda: str = Path(min_length=1, max_length=50),
        sarga: int = Path(ge=1),
        count: Optional[int] = Query(default=None, ge=1, le=MAX_QUESTION_COUNT),
        db: Session = Depends(get_db),
    ):
        generated = _generate(db, epic_id, PackageRequest(
            count=count or settings.default_question_count,
            kanda=kanda,
            sarga=sarga,
        ))
        _set_cache_headers(response, generated.package.quiz_id)
        data = {
            "quiz": generated.package.model_dump(),
            "chapter_info": {
                "epic_id": epic_id,
                "kanda": kanda,
                "sarga": sarga,
                "title": f"{kanda} Sarga {sarga}",
            },
        }
        return envelope(data, meta={"generated_at": utc_now_iso(), "chapter_focus": True})

    @router.get("/chapter/{epic_id}/{kanda}/{sarga}/questions")
    def get_chapter_questions(
        epic_id: str = Path(pattern=EPIC_ID_PATTERN, max_length=50),
        kanda: str = Path(min_length=1, max_length=50),
        sarga: int = Path(ge=1),
        db: Session = Depends(get_db),
    ):
        load_available_epic(db, epic_id)
        questions = chapter_questions(db, epic_id, kanda, sarga)
        data = {
            "questions": [project_question(q).model_dump() for q in questions],
            "chapter_info": {
                "epic_id": epic_id,
                "kanda": kanda,
                "sarga": sarga,
                "question_count": len(questions),
            },
        }
        return envelope(data, meta={"generated_at": utc_now_iso()})

    @router.get("/blocks/{epic_id}")
    def get_blocks(
        epic_id: str = Path(pattern=EPIC_ID_PATTERN, max_length=50),
        difficulty: Optional[DifficultyParam] = Query(default=None),
        db: Session = Depends(get_db),
    ):
        load_available_epic(db, epic_id)
        blocks = available_blocks(db, epic_id, Difficulty.parse(difficulty))
        return envelope(
            {
                "epic_id": epic_id,
                "blocks": [b.model_dump() for b in blocks],
                "total_blocks": len(blocks),
            },
            meta={"difficulty_filter": difficulty or "all", "generated_at": utc_now_iso()},
        )

    @router.get("/blocks/{epic_id}/recommended")
    def get_recommended_block(
        request: Request,
        epic_id: str = Path(pattern=EPIC_ID_PATTERN, max_length=50),
        difficulty: DifficultyParam = Query(default="easy"),
        db: Session = Depends(get_db),
    ):
        load_available_epic(db, epic_id)
        uid = current_user_id(request)

        level = Difficulty.parse(difficulty) or Difficulty.EASY
        block = recommend_block(db, epic_id, level)
        recommended = None
        if block is not None:
            counts = block_question_counts(db, [block.id])
            recommended = describe_block(block, counts.get(block.id)).model_dump()

        return envelope(
            {
                "recommended_block": recommended,
                "epic_id": epic_id,
                "user_id": uid,
                "difficulty_level": level.value,
            },
            meta={
                "recommendation_type": "personalized" if uid else "default",
                "generated_at": utc_now_iso(),
            },
        )

    @router.get("/block/{block_id}")
    def get_block_quiz(
        response: Response,
        block_id: int = Path(ge=1),
        count: Optional[int] = Query(default=None, ge=1, le=MAX_QUESTION_COUNT),
        difficulty: DifficultyParam = Query(default="mixed"),
        category: CategoryParam = Query(default="mixed"),
        db: Session = Depends(get_db),
    ):
        block = load_available_block(db, block_id)
        generated = _generate(db, block.epic_id, PackageRequest(
            count=count or settings.default_question_count,
            difficulty=Difficulty.parse(difficulty),
            category=Category.parse(category),
            block_id=block.id,
        ))
        _set_cache_headers(response, generated.package.quiz_id)
        return envelope(generated.package.model_dump(), meta=_package_meta(generated, difficulty, category))

    @router.post("/submit", status_code=201)
    def submit(payload: SubmitQuizIn, request: Request, db: Session = Depends(get_db)):
        uid = current_user_id(request)
        if not get_epic(db, payload.epic_id):
            raise EpicNotFoundError(payload.epic_id)

        answers = [Answer(a.question_id, a.user_answer, a.time_spent) for a in payload.answers]
        scoring = score_submission(db, payload.epic_id, answers)

        try:
            with transaction(db) as tx:
                record = record_attempt(
                    tx,
                    scoring=scoring,
                    epic_id=payload.epic_id,
                    user_id=uid,
                    quiz_id=str(payload.quiz_id),
                    time_spent=payload.time_spent,
                    device_type=payload.device_type,
                    app_version=payload.app_version,
                    merge_all_categories=settings.merge_all_categories,
                )
        except SQLAlchemyError:
            logger.exception("Submission for quiz %s (epic %s) rolled back", payload.quiz_id, payload.epic_id)
            raise SubmissionFailedError()

        result = SubmitQuizOut(
            quiz_id=str(payload.quiz_id),
            session_id=record.session.id,
            score=scoring.score,
            total_questions=scoring.total_questions,
            correct_answers=scoring.correct_count,
            correct_question_ids=scoring.correct_question_ids,
            percentage=scoring.score,
            feedback=FeedbackOut(
                message=feedback_message(scoring.score, scoring.breakdown),
                performance_level=performance_level(scoring.score),
                encouragement=encouragement(scoring.score),
                next_steps=next_steps(scoring.score, payload.epic_id),
            ),
            progress=summarize_progress(record.progress) if record.progress is not None else None,
            time_analysis=TimeAnalysisOut(
                total_seconds=payload.time_spent,
                average_per_question=round(payload.time_spent / scoring.total_questions),
                efficiency_rating=efficiency_rating(payload.time_spent, scoring.total_questions, scoring.score),
            ),
        )
        return envelope(
            result.model_dump(mode="json", by_alias=True),
            meta={
                "submitted_at": utc_now_iso(),
                "device_type": payload.device_type,
                "app_version": payload.app_version,
            },
        )

    @router.get("/progress/{epic_id}")
    def get_my_progress(
        request: Request,
        epic_id: str = Path(pattern=EPIC_ID_PATTERN, max_length=50),
        db: Session = Depends(get_db),
    ):
        uid = current_user_id(request)
        if not uid:
            raise HTTPException(401, "User must be identified to view progress")
        progress = get_progress(db, uid, epic_id)
        if progress is None:
            raise ProgressNotFoundError(epic_id)
        return envelope(summarize_progress(progress).model_dump(mode="json", by_alias=True))

    @router.get("/history")
    def get_history(
        request: Request,
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=20, ge=1, le=100),
        db: Session = Depends(get_db),
    ):
        uid = current_user_id(request)
        if not uid:
            raise HTTPException(401, "User must be logged in to view quiz history")
        rows, total = list_sessions(db, uid, page=page, limit=limit)
        return envelope(
            [QuizSessionOut.model_validate(r).model_dump(mode="json") for r in rows],
            meta={
                "pagination": {
                    "current_page": page,
                    "total_pages": math.ceil(total / limit) if total else 0,
                    "total_items": total,
                    "items_per_page": limit,
                }
            },
        )

    return router
