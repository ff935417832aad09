"""OpenStreetMap Overpass client.

Fetches named neighbourhoods, suburbs and quarters inside the configured
bounding box. Ways and relations come back with a computed centre.
"""

import logging
from dataclasses import dataclass

import httpx

from nepa_buddy.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OsmPlace:
    osm_id: int
    name: str
    latitude: float
    longitude: float


def build_query(bbox: str) -> str:
    return f"""
[out:json][timeout:60];
(
  node["place"~"neighbourhood|suburb|quarter|village"]({bbox});
  way["place"~"neighbourhood|suburb|quarter"]({bbox});
  relation["place"~"neighbourhood|suburb"]({bbox});
  node["name"]["admin_level"="10"]({bbox});
);
out center;
"""


async def fetch_places() -> tuple[int, list[OsmPlace]]:
    """Return (elements found, usable places). Empty on any failure."""
    try:
        async with httpx.AsyncClient(timeout=settings.overpass_timeout) as client:
            resp = await client.post(
                settings.overpass_api_url,
                data={"data": build_query(settings.osm_bbox)},
            )
            resp.raise_for_status()
            elements = resp.json().get("elements", [])
    except Exception as e:
        logger.warning("Overpass fetch failed: %s", e)
        return 0, []

    places = []
    for el in elements:
        place = _parse_element(el)
        if place is not None:
            places.append(place)

    logger.info("Overpass: %d elements, %d usable places", len(elements), len(places))
    return len(elements), places


def _parse_element(el: dict) -> OsmPlace | None:
    kind = el.get("type")
    if kind == "node":
        lat, lon = el.get("lat"), el.get("lon")
    elif kind in ("way", "relation"):
        center = el.get("center") or {}
        lat, lon = center.get("lat"), center.get("lon")
    else:
        return None

    name = (el.get("tags") or {}).get("name")
    if not name or lat is None or lon is None:
        return None
    try:
        return OsmPlace(osm_id=int(el.get("id", 0)), name=name, latitude=float(lat), longitude=float(lon))
    except (ValueError, TypeError):
        return None
