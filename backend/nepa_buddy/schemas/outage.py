from datetime import datetime

from pydantic import BaseModel


class OutageEventOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    zone_id: str
    started_at: datetime
    ended_at: datetime | None = None
    duration_minutes: int | None = None
    buddy_count: int = 0
    caption: str | None = None
