"""Zone import from OpenStreetMap: fetch places via Overpass, then register new ones."""

import logging
from datetime import datetime, timezone

from nepa_buddy.schemas.zone import OsmImportResult
from nepa_buddy.services import overpass_client
from nepa_buddy.services.tracker import PowerTracker

logger = logging.getLogger(__name__)


async def import_osm_zones(tracker: PowerTracker) -> OsmImportResult:
    logger.info("Starting OSM zone import")
    found, places = await overpass_client.fetch_places()
    imported = tracker.import_osm_places(places) if places else 0
    return OsmImportResult(found=found, imported=imported, as_of=datetime.now(timezone.utc))
