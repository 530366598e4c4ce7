import json
from typing import NamedTuple, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session
from .categories import Category, Difficulty
from .models import Question, QuizBlock, QuizSession, UserProgress


class Candidate(NamedTuple):
    id: str
    category: str
    difficulty: str


class AnswerKey(NamedTuple):
    correct_answer_id: int
    category: str


# Authoring helpers (seed data and tests; the editorial pipeline writes the real content)

def create_question(db: Session, epic_id: str, payload: dict, commit: bool = True) -> Question:
    options = list(payload.pop("options"))
    if len(options) != 4:
        raise ValueError("A question needs exactly 4 options")
    q = Question(epic_id=epic_id, options_json=json.dumps(options), **payload)
    db.add(q)
    if not commit:
        db.flush()
        return q
    db.commit()
    db.refresh(q)
    return q


def create_block(db: Session, epic_id: str, payload: dict, commit: bool = True) -> QuizBlock:
    objectives = list(payload.pop("learning_objectives", []))
    if payload["start_sarga"] > payload["end_sarga"]:
        raise ValueError("start_sarga must not exceed end_sarga")
    b = QuizBlock(epic_id=epic_id, learning_objectives_json=json.dumps(objectives), **payload)
    db.add(b)
    if not commit:
        db.flush()
        return b
    db.commit()
    db.refresh(b)
    return b


# Blocks

def get_block(db: Session, block_id: int) -> QuizBlock | None:
    return db.query(QuizBlock).filter(QuizBlock.id == block_id).first()


def first_available_block(db: Session, epic_id: str, difficulty: Difficulty) -> QuizBlock | None:
    return (
        db.query(QuizBlock)
        .filter(
            QuizBlock.epic_id == epic_id,
            QuizBlock.difficulty_level == difficulty.value,
            QuizBlock.is_available.is_(True),
        )
        .order_by(QuizBlock.sequence_order.asc())
        .first()
    )


def list_available_blocks(db: Session, epic_id: str, difficulty: Optional[Difficulty] = None) -> list[QuizBlock]:
    q = db.query(QuizBlock).filter(QuizBlock.epic_id == epic_id, QuizBlock.is_available.is_(True))
    if difficulty is not None:
        q = q.filter(QuizBlock.difficulty_level == difficulty.value)
    return q.order_by(QuizBlock.sequence_order.asc(), QuizBlock.id.asc()).all()


def block_question_counts(db: Session, block_ids: list[int]) -> dict[int, dict[str, int]]:
    if not block_ids:
        return {}
    rows = (
        db.query(Question.block_id, Question.category, func.count(Question.id))
        .filter(Question.block_id.in_(block_ids))
        .group_by(Question.block_id, Question.category)
        .all()
    )
    out: dict[int, dict[str, int]] = {bid: {c.value: 0 for c in Category} for bid in block_ids}
    for block_id, category, cnt in rows:
        if category in out[block_id]:
            out[block_id][category] = int(cnt)
    return out


# Questions

def candidate_rows(
    db: Session,
    epic_id: str,
    *,
    block_id: Optional[int] = None,
    kanda: Optional[str] = None,
    sarga: Optional[int] = None,
    difficulty: Optional[Difficulty] = None,
    category: Optional[Category] = None,
) -> list[Candidate]:
    q = db.query(Question.id, Question.category, Question.difficulty).filter(Question.epic_id == epic_id)

    if block_id is not None:
        q = q.filter(Question.block_id == block_id)
    elif kanda:
        q = q.filter(Question.kanda == kanda)
        if sarga is not None:
            q = q.filter(Question.sarga == sarga)

    if difficulty is not None:
        q = q.filter(Question.difficulty == difficulty.value)
    if category is not None:
        q = q.filter(Question.category == category.value)

    # stable input order; randomness is applied by the sampler
    return [Candidate(*row) for row in q.order_by(Question.id.asc()).all()]


def get_questions(db: Session, question_ids: list[str]) -> list[Question]:
    """Questions for the given ids, in the order the ids were given."""
    if not question_ids:
        return []
    rows = db.query(Question).filter(Question.id.in_(question_ids)).all()
    by_id = {q.id: q for q in rows}
    return [by_id[qid] for qid in question_ids if qid in by_id]


def answer_key(db: Session, epic_id: str, question_ids: list[str]) -> dict[str, AnswerKey]:
    distinct_ids = sorted(set(question_ids))
    if not distinct_ids:
        return {}
    rows = (
        db.query(Question.id, Question.correct_answer_id, Question.category)
        .filter(Question.id.in_(distinct_ids), Question.epic_id == epic_id)
        .all()
    )
    return {qid: AnswerKey(correct, category) for qid, correct, category in rows}


def chapter_questions(db: Session, epic_id: str, kanda: str, sarga: int) -> list[Question]:
    return (
        db.query(Question)
        .filter(Question.epic_id == epic_id, Question.kanda == kanda, Question.sarga == sarga)
        .order_by(Question.id.asc())
        .all()
    )


# Sessions and progress

def get_progress(db: Session, user_id: str, epic_id: str, *, for_update: bool = False) -> UserProgress | None:
    q = db.query(UserProgress).filter(UserProgress.user_id == user_id, UserProgress.epic_id == epic_id)
    if for_update:
        q = q.with_for_update()
    return q.first()


def list_sessions(db: Session, user_id: str, page: int = 1, limit: int = 20) -> tuple[list[QuizSession], int]:
    q = db.query(QuizSession).filter(QuizSession.user_id == user_id)
    total = q.count()
    rows = (
        q.order_by(QuizSession.completed_at.desc(), QuizSession.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total
