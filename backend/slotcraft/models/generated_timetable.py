from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from slotcraft.db.base import Base


class GeneratedTimetable(Base):
    __tablename__ = "generated_timetables"

    institution_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    entries: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    unscheduled_sessions: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    runtime_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
