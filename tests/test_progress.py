from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

import quiz_service.progress as progress_module
from quiz_service.categories import Category, CategoryBreakdown, CategoryTally
from quiz_service.models import QuizSession, UserProgress
from quiz_service.progress import merge_attempt, progress_breakdown, record_attempt, summarize_progress
from quiz_service.scoring import ScoringResult
from shared.database import transaction


def _scoring(breakdown: dict, correct_ids=None) -> ScoringResult:
    b = CategoryBreakdown.from_dict(breakdown)
    total = sum(t.total for _, t in b.items())
    correct = sum(t.correct for _, t in b.items())
    ids = correct_ids if correct_ids is not None else [f"q{i}" for i in range(correct)]
    return ScoringResult(
        score=(200 * correct + total) // (2 * total),
        total_questions=total,
        correct_question_ids=ids,
        breakdown=b,
    )


FIRST = {"characters": {"correct": 1, "total": 2}, "events": {"correct": 2, "total": 2}}
SECOND = {
    "characters": {"correct": 1, "total": 1},
    "themes": {"correct": 1, "total": 2},
    "culture": {"correct": 0, "total": 1},
}


def _record(db, scoring, user_id="user-1", **kwargs):
    with transaction(db) as tx:
        return record_attempt(tx, scoring=scoring, epic_id="ramayana", user_id=user_id, **kwargs)


class TestRecordAttempt:
    def test_first_attempt_creates_progress(self, db, make_epic):
        make_epic()
        record = _record(db, _scoring(FIRST), quiz_id="quiz-1", time_spent=120, device_type="web")

        assert record.session.user_id == "user-1"
        assert record.session.score == 75
        assert record.session.device_type == "web"
        p = record.progress
        assert (p.quizzes_completed, p.total_questions_answered, p.correct_answers) == (1, 4, 3)
        assert (p.characters_correct, p.characters_total) == (1, 2)
        assert (p.events_correct, p.events_total) == (2, 2)

    def test_progress_merge_is_additive(self, db, SessionLocal, make_epic):
        """Every counter after two attempts is the sum of both."""
        make_epic()
        _record(db, _scoring(FIRST))
        _record(db, _scoring(SECOND))

        fresh = SessionLocal()
        p = fresh.query(UserProgress).filter_by(user_id="user-1", epic_id="ramayana").one()
        assert p.quizzes_completed == 2
        assert p.total_questions_answered == 8
        assert p.correct_answers == 5
        assert (p.characters_correct, p.characters_total) == (2, 3)
        assert (p.events_correct, p.events_total) == (2, 2)
        assert (p.themes_correct, p.themes_total) == (1, 2)
        assert (p.culture_correct, p.culture_total) == (0, 1)
        assert fresh.query(QuizSession).count() == 2
        fresh.close()

    def test_legacy_merge_skips_themes_and_culture_on_update(self, db, make_epic):
        make_epic()
        _record(db, _scoring(SECOND), merge_all_categories=False)
        record = _record(db, _scoring(SECOND), merge_all_categories=False)

        p = record.progress
        assert p.quizzes_completed == 2
        assert (p.characters_correct, p.characters_total) == (2, 2)
        # only the first attempt's themes and culture made it in
        assert (p.themes_correct, p.themes_total) == (1, 2)
        assert (p.culture_correct, p.culture_total) == (0, 1)

    def test_anonymous_attempt_writes_session_only(self, db, SessionLocal, make_epic):
        make_epic()
        record = _record(db, _scoring(FIRST), user_id=None)

        assert record.progress is None
        fresh = SessionLocal()
        assert fresh.query(QuizSession).count() == 1
        assert fresh.query(UserProgress).count() == 0
        fresh.close()

    def test_failed_progress_write_leaves_nothing_behind(self, db, SessionLocal, make_epic, monkeypatch):
        make_epic()

        def boom(*args, **kwargs):
            raise OperationalError("UPDATE user_progress", {}, Exception("disk I/O error"))

        monkeypatch.setattr(progress_module, "upsert_user_progress", boom)
        with pytest.raises(OperationalError):
            _record(db, _scoring(FIRST))

        fresh = SessionLocal()
        assert fresh.query(QuizSession).count() == 0
        assert fresh.query(UserProgress).count() == 0
        fresh.close()

    def test_concurrent_first_insert_folds_into_existing_row(self, db, SessionLocal, make_epic, monkeypatch):
        make_epic()
        _record(db, _scoring(FIRST))

        real_get_progress = progress_module.get_progress
        calls = []

        def stale_first_read(*args, **kwargs):
            calls.append(1)
            # the first lookup misses the row another writer just committed
            if len(calls) == 1:
                return None
            return real_get_progress(*args, **kwargs)

        monkeypatch.setattr(progress_module, "get_progress", stale_first_read)
        _record(db, _scoring(SECOND))

        fresh = SessionLocal()
        rows = fresh.query(UserProgress).all()
        assert len(rows) == 1
        assert rows[0].quizzes_completed == 2
        assert rows[0].total_questions_answered == 8
        fresh.close()


def test_summarize_progress(db, make_epic):
    make_epic()
    record = _record(db, _scoring(FIRST))
    summary = summarize_progress(record.progress)

    assert summary.total_quizzes == 1
    assert summary.average_score == 75
    assert summary.category_scores["events"] == {"correct": 2, "total": 2}
    assert summary.category_strengths["events"].level == "strong"
    assert summary.category_strengths["characters"].percentage == 50
    assert summary.category_strengths["themes"].level == "needs_focus"
    dumped = summary.model_dump(by_alias=True)
    assert "totalQuizzes" in dumped and "categoryScores" in dumped


def test_merge_into_row_with_unset_buckets():
    progress = UserProgress(user_id="user-1", epic_id="ramayana", events_correct=3, events_total=4)
    assert progress_breakdown(progress)[Category.THEMES] == CategoryTally(0, 0)

    merge_attempt(progress, _scoring(SECOND), datetime.now(timezone.utc))
    assert progress_breakdown(progress).as_dict() == {
        "characters": {"correct": 1, "total": 1},
        "events": {"correct": 3, "total": 4},
        "themes": {"correct": 1, "total": 2},
        "culture": {"correct": 0, "total": 1},
    }
    assert progress.quizzes_completed == 1
