from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DifficultyParam = Literal["easy", "medium", "hard", "mixed"]
CategoryParam = Literal["characters", "events", "themes", "culture", "mixed"]

EPIC_ID_PATTERN = r"^[a-z_]+$"
MAX_QUESTION_COUNT = 50


class CamelModel(BaseModel):
    # wire format of the submit endpoint is camelCase; python side stays snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Package

class QuizQuestionOut(BaseModel):
    # never carries difficulty
    id: str
    text: str
    options: list[str]
    correct_answer_id: int
    basic_explanation: str
    category: str


class EpicSummaryOut(BaseModel):
    id: str
    title: str
    language: str


class BlockInfoOut(BaseModel):
    id: int
    name: str
    difficulty: str
    sarga_range: str  # "start-end"
    learning_objectives: list[str]


class QuizPackageOut(BaseModel):
    quiz_id: str
    epic: EpicSummaryOut
    block_info: Optional[BlockInfoOut] = None
    questions: list[QuizQuestionOut]


class QuizBlockOut(BaseModel):
    id: int
    epic_id: str
    block_name: str
    difficulty_level: str
    phase: str
    kanda: str
    start_sarga: int
    end_sarga: int
    sequence_order: int
    narrative_summary: str
    learning_objectives: list[str]
    total_questions: int = 0
    character_questions: int = 0
    event_questions: int = 0
    theme_questions: int = 0
    culture_questions: int = 0


# Submission

class SubmitAnswerIn(BaseModel):
    question_id: str = Field(min_length=1, max_length=64)
    user_answer: int = Field(ge=0, le=3)
    time_spent: int = Field(ge=1, le=300, description="Seconds spent on this question")


class SubmitQuizIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quiz_id: UUID = Field(alias="quizId")
    epic_id: str = Field(alias="epicId", pattern=EPIC_ID_PATTERN, min_length=3, max_length=50)
    answers: list[SubmitAnswerIn] = Field(min_length=1, max_length=MAX_QUESTION_COUNT)
    time_spent: int = Field(alias="timeSpent", ge=0, le=7200, description="Total seconds for the quiz")
    device_type: Optional[Literal["mobile", "tablet", "web"]] = Field(default=None, alias="deviceType")
    app_version: Optional[str] = Field(default=None, alias="appVersion", pattern=r"^\d+\.\d+\.\d+$")


class FeedbackOut(CamelModel):
    message: str
    performance_level: str
    encouragement: str
    next_steps: list[str]


class CategoryStrengthOut(CamelModel):
    percentage: int
    level: Literal["strong", "developing", "needs_focus"]


class ProgressOut(CamelModel):
    epic_id: str
    total_quizzes: int
    total_questions_answered: int
    correct_answers: int
    average_score: int
    category_scores: dict[str, dict[str, int]]
    category_strengths: dict[str, CategoryStrengthOut]
    last_quiz_at: Optional[datetime] = None


class TimeAnalysisOut(CamelModel):
    total_seconds: int
    average_per_question: int
    efficiency_rating: Literal["efficient", "thorough", "rushed", "balanced"]


class SubmitQuizOut(CamelModel):
    quiz_id: str
    session_id: str
    score: int
    total_questions: int
    correct_answers: int
    correct_question_ids: list[str]
    percentage: int
    feedback: FeedbackOut
    progress: Optional[ProgressOut] = None
    time_analysis: TimeAnalysisOut


# History

class QuizSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    quiz_id: str
    epic_id: str
    score: int
    total_questions: int
    correct_answers: int
    time_spent: int
    device_type: Optional[str] = None
    app_version: Optional[str] = None
    completed_at: datetime
