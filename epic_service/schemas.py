from pydantic import BaseModel, ConfigDict


class EpicOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    language: str
    culture: str
    time_period: str
    is_available: bool


class EpicStatsOut(BaseModel):
    epic_id: str
    total_questions: int
    questions_by_category: dict[str, int]
    questions_by_difficulty: dict[str, int]


class TrendingEpicOut(EpicOut):
    recent_sessions: int
