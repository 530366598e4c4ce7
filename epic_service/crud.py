from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session
from .models import Epic

TRENDING_WINDOW_DAYS = 7


def list_epics(db: Session, include_unavailable: bool = False) -> list[Epic]:
    q = db.query(Epic)
    if not include_unavailable:
        q = q.filter(Epic.is_available.is_(True))
    return q.order_by(Epic.created_at.desc(), Epic.id.asc()).all()


def get_epic(db: Session, epic_id: str) -> Epic | None:
    return db.query(Epic).filter(Epic.id == epic_id).first()


def search_epics(db: Session, term: str) -> list[Epic]:
    """Available epics whose title, description or culture contains `term`, title hits first."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    title_hit = Epic.title.ilike(pattern, escape="\\")
    return (
        db.query(Epic)
        .filter(
            Epic.is_available.is_(True),
            or_(
                title_hit,
                Epic.description.ilike(pattern, escape="\\"),
                Epic.culture.ilike(pattern, escape="\\"),
            ),
        )
        .order_by(case((title_hit, 0), else_=1), Epic.created_at.desc(), Epic.id.asc())
        .all()
    )


def trending_epics(
    db: Session,
    limit: int = 5,
    now: datetime | None = None,
    window_days: int = TRENDING_WINDOW_DAYS,
) -> list[tuple[Epic, int]]:
    """Available epics with their session count over the last `window_days`, busiest first."""
    # quiz_service.models imports this package
    from quiz_service.models import QuizSession

    since = (now or datetime.now(timezone.utc)) - timedelta(days=window_days)
    recent = func.count(QuizSession.id)
    rows = (
        db.query(Epic, recent)
        .outerjoin(QuizSession, and_(QuizSession.epic_id == Epic.id, QuizSession.completed_at > since))
        .filter(Epic.is_available.is_(True))
        .group_by(Epic.id)
        .order_by(recent.desc(), Epic.created_at.desc(), Epic.id.asc())
        .limit(limit)
        .all()
    )
    return [(epic, int(count)) for epic, count in rows]


def create_epic(db: Session, payload: dict, commit: bool = True) -> Epic:
    e = Epic(**payload)
    db.add(e)
    if not commit:
        db.flush()
        return e
    db.commit()
    db.refresh(e)
    return e


def epic_stats(db: Session, epic_id: str) -> dict:
    # quiz_service.models imports this package
    from quiz_service.models import Question
    from quiz_service.categories import Category, Difficulty

    by_category = {c.value: 0 for c in Category}
    by_difficulty = {d.value: 0 for d in Difficulty}

    rows = (
        db.query(Question.category, Question.difficulty, func.count(Question.id))
        .filter(Question.epic_id == epic_id)
        .group_by(Question.category, Question.difficulty)
        .all()
    )

    total = 0
    for category, difficulty, cnt in rows:
        total += int(cnt)
        if category in by_category:
            by_category[category] += int(cnt)
        if difficulty in by_difficulty:
            by_difficulty[difficulty] += int(cnt)

    return {
        "epic_id": epic_id,
        "total_questions": total,
        "questions_by_category": by_category,
        "questions_by_difficulty": by_difficulty,
    }
