import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from shared.database import Base

import epic_service.models  # noqa: F401  (epics table for the foreign keys)


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizBlock(Base):
    __tablename__ = "quiz_blocks"
    __table_args__ = (
        UniqueConstraint("epic_id", "difficulty_level", "sequence_order", name="uq_quiz_block_sequence"),
        CheckConstraint("start_sarga <= end_sarga", name="ck_quiz_block_sarga_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    epic_id: Mapped[str] = mapped_column(String(50), ForeignKey("epics.id"), index=True)
    block_name: Mapped[str] = mapped_column(String(255))
    difficulty_level: Mapped[str] = mapped_column(String(10), index=True)  # easy/medium/hard
    phase: Mapped[str] = mapped_column(String(50), default="")  # foundational/development/mastery
    kanda: Mapped[str] = mapped_column(String(50), default="")
    start_sarga: Mapped[int] = mapped_column(Integer)
    end_sarga: Mapped[int] = mapped_column(Integer)
    learning_objectives_json: Mapped[str] = mapped_column(Text, default="[]")
    narrative_summary: Mapped[str] = mapped_column(Text, default="")
    sequence_order: Mapped[int] = mapped_column(Integer)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)

    @property
    def learning_objectives(self) -> list[str]:
        return json.loads(self.learning_objectives_json or "[]")


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        CheckConstraint("correct_answer_id BETWEEN 0 AND 3", name="ck_question_correct_answer"),
        CheckConstraint(
            "category IN ('characters', 'events', 'themes', 'culture')", name="ck_question_category"
        ),
        CheckConstraint("difficulty IN ('easy', 'medium', 'hard')", name="ck_question_difficulty"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    epic_id: Mapped[str] = mapped_column(String(50), ForeignKey("epics.id"), index=True)
    category: Mapped[str] = mapped_column(String(20), index=True)
    difficulty: Mapped[str] = mapped_column(String(10), index=True)
    question_text: Mapped[str] = mapped_column(Text)
    options_json: Mapped[str] = mapped_column(Text, default="[]")  # exactly 4 strings
    correct_answer_id: Mapped[int] = mapped_column(Integer)
    basic_explanation: Mapped[str] = mapped_column(Text, default="")
    kanda: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    sarga: Mapped[int | None] = mapped_column(Integer, nullable=True)
    block_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("quiz_blocks.id"), nullable=True, index=True)

    @property
    def options(self) -> list[str]:
        return json.loads(self.options_json or "[]")


class QuizSession(Base):
    """Audit record of one submitted attempt. Written once, never updated."""
    __tablename__ = "quiz_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    quiz_id: Mapped[str] = mapped_column(String(36), default="")
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)  # None = anonymous
    epic_id: Mapped[str] = mapped_column(String(50), ForeignKey("epics.id"), index=True)
    answers_json: Mapped[str] = mapped_column(Text, default="[]")
    score: Mapped[int] = mapped_column(Integer, default=0)  # 0-100
    total_questions: Mapped[int] = mapped_column(Integer, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)
    time_spent: Mapped[int] = mapped_column(Integer, default=0)  # seconds
    device_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    app_version: Mapped[str | None] = mapped_column(String(20), nullable=True)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)


class UserProgress(Base):
    __tablename__ = "user_progress"
    __table_args__ = (UniqueConstraint("user_id", "epic_id", name="uq_user_progress_user_epic"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    epic_id: Mapped[str] = mapped_column(String(50), ForeignKey("epics.id"), index=True)

    quizzes_completed: Mapped[int] = mapped_column(Integer, default=0)
    total_questions_answered: Mapped[int] = mapped_column(Integer, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)

    # one {correct, total} pair per category
    characters_correct: Mapped[int] = mapped_column(Integer, default=0)
    characters_total: Mapped[int] = mapped_column(Integer, default=0)
    events_correct: Mapped[int] = mapped_column(Integer, default=0)
    events_total: Mapped[int] = mapped_column(Integer, default=0)
    themes_correct: Mapped[int] = mapped_column(Integer, default=0)
    themes_total: Mapped[int] = mapped_column(Integer, default=0)
    culture_correct: Mapped[int] = mapped_column(Integer, default=0)
    culture_total: Mapped[int] = mapped_column(Integer, default=0)

    last_quiz_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
