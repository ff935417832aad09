from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

FeedbackType = Literal["light_on", "light_off", "gen_mode", "inverter"]
ProblemType = Literal["no_power", "low_voltage", "frequent_tripping", "meter_issues"]


class DeviceReportIn(BaseModel):
    zone_id: str
    device_hash: str = Field(min_length=1, max_length=64)
    is_charging: bool
    reported_at: datetime | None = None


class ReportAck(BaseModel):
    status: Literal["recorded", "duplicate", "dropped"]
    zone_id: str
    zone_status: str | None = None
    reason: str | None = None


class FeedbackIn(BaseModel):
    zone_id: str
    device_hash: str = Field(min_length=1, max_length=64)
    feedback_type: FeedbackType


class IssueReportIn(BaseModel):
    zone_id: str | None = None
    location_description: str = Field(min_length=1, max_length=255)
    problem_types: list[ProblemType] = Field(min_length=1)
    power_available: bool
    device_hash: str | None = Field(default=None, max_length=64)
    additional_notes: str | None = None


class IssueReportOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    zone_id: str | None = None
    location_description: str
    problem_types: list[str] = []
    power_available: bool
    device_hash: str | None = None
    additional_notes: str | None = None
    status: str = "pending"
    reported_at: datetime
