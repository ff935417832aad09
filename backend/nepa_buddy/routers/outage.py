from datetime import datetime

from fastapi import APIRouter, Depends, Query

from nepa_buddy.dependencies import get_tracker
from nepa_buddy.schemas.outage import OutageEventOut
from nepa_buddy.services.tracker import PowerTracker

router = APIRouter(tags=["outages"])


@router.get("/outages/", response_model=list[OutageEventOut])
def list_outages(
    zone_id: str | None = None,
    since: datetime | None = None,
    until: datetime | None = None,
    limit: int = Query(20, ge=1, le=500),
    tracker: PowerTracker = Depends(get_tracker),
):
    """Outage history, newest first, optionally for one zone and a start-time range."""
    return tracker.list_outage_events(zone_id=zone_id, since=since, until=until, limit=limit)
