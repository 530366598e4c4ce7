import logging
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from shared.database import db_dependency
from shared.responses import envelope, utc_now_iso
from quiz_service.errors import EpicNotFoundError
from .schemas import EpicOut, EpicStatsOut, TrendingEpicOut
from .crud import TRENDING_WINDOW_DAYS, list_epics, get_epic, epic_stats, search_epics, trending_epics

logger = logging.getLogger("epic-service")

EPIC_ID_PATTERN = r"^[a-z_]+$"


def build_router(SessionLocal):
    router = APIRouter()
    get_db = db_dependency(SessionLocal)

    @router.get("")
    def get_all(include_unavailable: bool = Query(default=False), db: Session = Depends(get_db)):
        epics = list_epics(db, include_unavailable)
        return envelope(
            [EpicOut.model_validate(e).model_dump() for e in epics],
            meta={"total": len(epics), "generated_at": utc_now_iso()},
        )

    # fixed paths go before /{epic_id}
    @router.get("/search")
    def search(q: str = Query(min_length=2, max_length=100), db: Session = Depends(get_db)):
        epics = search_epics(db, q)
        return envelope(
            [EpicOut.model_validate(e).model_dump() for e in epics],
            meta={"query": q, "count": len(epics), "generated_at": utc_now_iso()},
        )

    @router.get("/trending")
    def trending(limit: int = Query(default=5, ge=1, le=50), db: Session = Depends(get_db)):
        rows = trending_epics(db, limit)
        data = [
            TrendingEpicOut(**EpicOut.model_validate(e).model_dump(), recent_sessions=n).model_dump()
            for e, n in rows
        ]
        return envelope(
            data,
            meta={"count": len(data), "period": f"{TRENDING_WINDOW_DAYS} days", "generated_at": utc_now_iso()},
        )

    @router.get("/{epic_id}")
    def get_one(epic_id: str = Path(pattern=EPIC_ID_PATTERN, max_length=50), db: Session = Depends(get_db)):
        e = get_epic(db, epic_id)
        if not e:
            raise EpicNotFoundError(epic_id)
        return envelope(EpicOut.model_validate(e).model_dump())

    @router.get("/{epic_id}/stats")
    def get_stats(epic_id: str = Path(pattern=EPIC_ID_PATTERN, max_length=50), db: Session = Depends(get_db)):
        if not get_epic(db, epic_id):
            raise EpicNotFoundError(epic_id)
        stats = EpicStatsOut(**epic_stats(db, epic_id))
        logger.info("Stats for epic %s: %s questions", epic_id, stats.total_questions)
        return envelope(stats.model_dump())

    return router
