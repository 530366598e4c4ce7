import itertools

import pytest
from fastapi.testclient import TestClient

from shared.config import Settings
from shared.database import build_engine, build_session_factory, init_db
from epic_service.crud import create_epic
from quiz_service.crud import create_block, create_question
from main import create_app

_counter = itertools.count(1)


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", cors_origins=["*"])


@pytest.fixture
def engine():
    """Provide a fresh in-memory SQLite database for each test."""
    eng = build_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def SessionLocal(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(SessionLocal):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_epic(db):
    def _make(epic_id="ramayana", is_available=True, **fields):
        payload = {
            "id": epic_id,
            "title": fields.pop("title", epic_id.upper()),
            "language": "sanskrit",
            "culture": "Hindu",
            "is_available": is_available,
        }
        payload.update(fields)
        return create_epic(db, payload)

    return _make


@pytest.fixture
def make_question(db):
    def _make(epic_id="ramayana", category="characters", difficulty="easy", correct=1, **fields):
        n = next(_counter)
        payload = {
            "category": category,
            "difficulty": difficulty,
            "question_text": fields.pop("question_text", f"Question {n}?"),
            "options": fields.pop("options", ["A", "B", "C", "D"]),
            "correct_answer_id": correct,
            "basic_explanation": f"Explanation {n}",
        }
        payload.update(fields)
        return create_question(db, epic_id, payload)

    return _make


@pytest.fixture
def make_block(db):
    def _make(epic_id="ramayana", difficulty="easy", sequence_order=1, **fields):
        payload = {
            "block_name": fields.pop("block_name", f"Block {difficulty} {sequence_order}"),
            "difficulty_level": difficulty,
            "phase": "foundational",
            "kanda": "bala_kanda",
            "start_sarga": 1,
            "end_sarga": 5,
            "sequence_order": sequence_order,
            "narrative_summary": "Summary",
            "learning_objectives": ["Objective"],
        }
        payload.update(fields)
        return create_block(db, epic_id, payload)

    return _make


@pytest.fixture
def twelve_question_epic(make_epic, make_question):
    """Three questions in each category, difficulties spread across them."""
    make_epic()
    questions = []
    for category in ("characters", "events", "themes", "culture"):
        for difficulty in ("easy", "medium", "hard"):
            questions.append(make_question(category=category, difficulty=difficulty))
    return questions
