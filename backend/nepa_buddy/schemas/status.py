from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from nepa_buddy.schemas.zone import ZoneOut

PowerStatus = Literal["on", "off", "recovering", "unknown"]
Confidence = Literal["low", "medium", "high"]


class ZonePowerStatusOut(BaseModel):
    model_config = {"from_attributes": True}

    zone_id: str
    status: PowerStatus = "unknown"
    confidence: Confidence = "low"
    buddy_count: int = 0
    plugged_count: int = 0
    unplugged_count: int = 0
    last_change_at: datetime
    updated_at: datetime
    zone: ZoneOut | None = None


class NearestZoneOut(BaseModel):
    zone: ZoneOut
    status: ZonePowerStatusOut | None = None


class ForceStatusRequest(BaseModel):
    status: PowerStatus
    confidence: Confidence = "high"


class StatusChangeEvent(BaseModel):
    """Emitted once per status transition, after the write commits."""
    zone_id: str
    old_status: PowerStatus
    new_status: PowerStatus
    buddy_count: int = 0
    confidence: Confidence = "low"
    timestamp: datetime
    forced: bool = False  # administrative override, not a decision
