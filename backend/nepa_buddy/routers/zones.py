from fastapi import APIRouter, Depends, HTTPException, Query

from nepa_buddy.dependencies import get_tracker
from nepa_buddy.schemas.status import NearestZoneOut
from nepa_buddy.schemas.zone import ZoneCreate, ZoneOut
from nepa_buddy.services.tracker import PowerTracker

router = APIRouter(prefix="/zones", tags=["zones"])


@router.get("/", response_model=list[ZoneOut])
def list_zones(tracker: PowerTracker = Depends(get_tracker)):
    """All known zones, ordered by display name."""
    return tracker.list_zones()


@router.post("/", response_model=ZoneOut, status_code=201)
def submit_zone(body: ZoneCreate, tracker: PowerTracker = Depends(get_tracker)):
    """Register a user-submitted area. 409 if the name exists, 422 if outside Lagos."""
    return tracker.register_zone(body.display_name, body.latitude, body.longitude,
                                 submitted_by=body.submitted_by)


@router.get("/nearest", response_model=NearestZoneOut)
def nearest_zone(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    tracker: PowerTracker = Depends(get_tracker),
):
    """Closest zone centroid to a coordinate, with its current status."""
    result = tracker.find_nearest_zone(lat, lng)
    if result is None:
        raise HTTPException(status_code=404, detail="No zones registered")
    return result


@router.get("/{zone_id}", response_model=ZoneOut)
def get_zone(zone_id: str, tracker: PowerTracker = Depends(get_tracker)):
    return tracker.get_zone(zone_id)
