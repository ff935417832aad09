"""Operator endpoints. force-status bypasses the status decision and exists for testing."""

from fastapi import APIRouter, Depends

from nepa_buddy.dependencies import get_tracker
from nepa_buddy.schemas.status import ForceStatusRequest, ZonePowerStatusOut
from nepa_buddy.schemas.zone import OsmImportResult
from nepa_buddy.services.osm_import import import_osm_zones
from nepa_buddy.services.tracker import PowerTracker

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/zones/{zone_id}/force-status", response_model=ZonePowerStatusOut)
def force_status(zone_id: str, body: ForceStatusRequest, tracker: PowerTracker = Depends(get_tracker)):
    return tracker.force_status(zone_id, body.status, body.confidence)


@router.post("/import-osm", response_model=OsmImportResult)
async def import_osm(tracker: PowerTracker = Depends(get_tracker)):
    """Pull neighbourhoods from OpenStreetMap and register the new ones."""
    return await import_osm_zones(tracker)


@router.post("/recompute")
def recompute(tracker: PowerTracker = Depends(get_tracker)):
    """Re-run the status decision for every live zone."""
    return {"status": "ok", "transitions": tracker.recompute_all()}
