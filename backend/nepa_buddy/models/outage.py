from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from nepa_buddy.database import Base


class OutageEvent(Base):
    """Append-only outage history: one row per off-period of a zone.

    ended_at is NULL while the outage is ongoing; a zone has at most one
    open row at a time.
    """
    __tablename__ = "outage_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(String(36), nullable=False, index=True)
    started_at = Column(DateTime, nullable=False, index=True)
    ended_at = Column(DateTime)
    duration_minutes = Column(Integer)
    buddy_count = Column(Integer, nullable=False, default=0)  # snapshot at start
    caption = Column(String(120))
    created_at = Column(DateTime, server_default=func.now())
