import random

import pytest

from quiz_service.categories import Category, Difficulty
from quiz_service.errors import (
    BlockNotFoundError, EpicNotFoundError, EpicUnavailableError, InsufficientContentError,
)
from quiz_service.package import PackageRequest, generate_quiz_package


def test_package_projection(db, twelve_question_epic):
    generated = generate_quiz_package(db, "ramayana", PackageRequest(count=5), rng=random.Random(1))
    package = generated.package

    assert package.epic.id == "ramayana"
    assert package.block_info is None
    assert len(package.questions) == 5
    dumped = package.model_dump()
    for q in dumped["questions"]:
        assert set(q) == {"id", "text", "options", "correct_answer_id", "basic_explanation", "category"}
        assert len(q["options"]) == 4


def test_each_package_gets_a_new_quiz_id(db, twelve_question_epic):
    a = generate_quiz_package(db, "ramayana", PackageRequest(count=5))
    b = generate_quiz_package(db, "ramayana", PackageRequest(count=5))
    assert a.package.quiz_id != b.package.quiz_id


def test_unknown_epic(db):
    with pytest.raises(EpicNotFoundError):
        generate_quiz_package(db, "odyssey", PackageRequest())


def test_unavailable_epic(db, make_epic):
    make_epic("mahabharata", is_available=False)
    with pytest.raises(EpicUnavailableError):
        generate_quiz_package(db, "mahabharata", PackageRequest())


def test_pinned_difficulty_selects_first_block(db, make_epic, make_block, make_question):
    make_epic()
    block = make_block(difficulty="medium", sequence_order=1, start_sarga=16, end_sarga=25)
    make_block(difficulty="medium", sequence_order=2, start_sarga=26, end_sarga=30)
    in_block = {make_question(difficulty="medium", block_id=block.id).id for _ in range(6)}
    make_question(difficulty="medium")

    generated = generate_quiz_package(db, "ramayana", PackageRequest(count=10, difficulty=Difficulty.MEDIUM))
    assert generated.block.id == block.id
    assert generated.package.block_info.sarga_range == "16-25"
    assert {q.id for q in generated.package.questions} == in_block


def test_explicit_block_must_exist(db, twelve_question_epic):
    with pytest.raises(BlockNotFoundError):
        generate_quiz_package(db, "ramayana", PackageRequest(block_id=12345))


def test_explicit_block_of_another_epic(db, make_epic, make_block, twelve_question_epic):
    make_epic("mahabharata")
    foreign = make_block(epic_id="mahabharata")
    with pytest.raises(BlockNotFoundError):
        generate_quiz_package(db, "ramayana", PackageRequest(block_id=foreign.id))


def test_insufficient_content(db, twelve_question_epic):
    with pytest.raises(InsufficientContentError):
        generate_quiz_package(db, "ramayana", PackageRequest(count=10, category=Category.THEMES))


def test_min_viable_is_configurable(db, twelve_question_epic):
    generated = generate_quiz_package(
        db, "ramayana", PackageRequest(count=10, category=Category.THEMES), min_viable=3,
    )
    assert len(generated.package.questions) == 3
    assert {q.category for q in generated.package.questions} == {"themes"}
