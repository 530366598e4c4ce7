from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from shared.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Epic(Base):
    __tablename__ = "epics"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)  # e.g. "ramayana"
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    language: Mapped[str] = mapped_column(String(50), default="sanskrit")
    culture: Mapped[str] = mapped_column(String(100), default="")
    time_period: Mapped[str] = mapped_column(String(100), default="")
    is_available: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
