import pytest

import seed
from epic_service.crud import get_epic, list_epics
from quiz_service.blocks import available_blocks
from quiz_service.categories import Difficulty
from quiz_service.models import Question, QuizBlock
from quiz_service.package import PackageRequest, generate_quiz_package
from seed import QUESTIONS, seed_sample_content


def test_seed_loads_sample_content(db):
    assert seed_sample_content(db) is True
    assert [e.id for e in list_epics(db)] == ["ramayana"]
    assert len(list_epics(db, include_unavailable=True)) == 2
    assert db.query(Question).count() == len(QUESTIONS)

    easy = available_blocks(db, "ramayana", Difficulty.EASY)
    assert easy[0].block_name == "Origins & Divine Birth"
    assert easy[0].total_questions == 6


def test_seed_is_idempotent(db):
    seed_sample_content(db)
    assert seed_sample_content(db) is False
    assert db.query(Question).count() == len(QUESTIONS)


def test_seeded_epic_serves_an_easy_block_quiz(db):
    seed_sample_content(db)
    generated = generate_quiz_package(db, "ramayana", PackageRequest(count=5, difficulty=Difficulty.EASY))
    assert generated.block.block_name == "Origins & Divine Birth"
    assert len(generated.package.questions) == 5


def test_questions_land_in_the_block_of_their_difficulty(db):
    seed_sample_content(db)
    blocks = {b.id: b for b in db.query(QuizBlock).all()}
    for q in db.query(Question).filter(Question.block_id.isnot(None)):
        assert blocks[q.block_id].difficulty_level == q.difficulty

    counts = {b.block_name: b.total_questions for b in available_blocks(db, "ramayana")}
    assert counts["Forest Adventures & Demon Battles"] == 2
    assert counts["The Impossible Bow & Divine Marriage"] == 2


def test_failed_seed_leaves_nothing_behind(db, monkeypatch):
    broken = dict(QUESTIONS[-1][1], options=["A", "B", "C"])
    monkeypatch.setattr(seed, "QUESTIONS", QUESTIONS + [(None, broken)])

    with pytest.raises(ValueError):
        seed.seed_sample_content(db)

    assert get_epic(db, "ramayana") is None
    assert db.query(QuizBlock).count() == 0
    assert db.query(Question).count() == 0
    # a clean retry still works
    monkeypatch.setattr(seed, "QUESTIONS", QUESTIONS)
    assert seed.seed_sample_content(db) is True
