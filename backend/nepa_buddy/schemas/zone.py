from datetime import datetime

from pydantic import BaseModel, Field


class ZoneOut(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    name: str
    display_name: str
    latitude: float
    longitude: float
    geohash_prefix: str
    source: str = "user"


class ZoneCreate(BaseModel):
    display_name: str = Field(min_length=1, max_length=120)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    submitted_by: str | None = Field(default=None, max_length=64)


class OsmImportResult(BaseModel):
    found: int = 0
    imported: int = 0
    as_of: datetime | None = None
