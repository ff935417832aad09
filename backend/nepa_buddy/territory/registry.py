"""Zone registry: nearest-zone lookup and zone registration.

Distances are plain Euclidean over raw degrees, not haversine. At city
scale the error is small, and nearest-zone assignments depend on it.
"""

import logging
import math
import re
from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from nepa_buddy.config import Settings
from nepa_buddy.exceptions import DuplicateZone, InvalidZoneName, OutOfBounds
from nepa_buddy.models.zone import Zone, ZonePowerStatus
from nepa_buddy.territory import geohash

logger = logging.getLogger(__name__)

_NON_SLUG_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")

MAX_SLUG_LENGTH = 50


def sanitize_name(display_name: str) -> str:
    """Turn a display name into a zone slug: "Lekki Phase 1" -> "lekki_phase_1"."""
    slug = _NON_SLUG_RE.sub("", display_name.lower())
    slug = _WHITESPACE_RE.sub("_", slug)
    return slug[:MAX_SLUG_LENGTH]


def find_nearest_zone(lat: float, lng: float, zones: Iterable[Zone]) -> Zone | None:
    """Zone whose centroid is closest to (lat, lng); first one wins on ties."""
    nearest = None
    min_distance = math.inf
    for zone in zones:
        distance = math.sqrt((zone.latitude - lat) ** 2 + (zone.longitude - lng) ** 2)
        if distance < min_distance:
            min_distance = distance
            nearest = zone
    return nearest


class ZoneRegistry:
    def __init__(self, settings: Settings):
        self.settings = settings

    def in_region(self, lat: float, lng: float) -> bool:
        s = self.settings
        return (s.region_min_lat <= lat <= s.region_max_lat
                and s.region_min_lng <= lng <= s.region_max_lng)

    def list_zones(self, db: Session) -> Sequence[Zone]:
        return db.scalars(select(Zone).order_by(Zone.display_name, Zone.id)).all()

    def get_zone(self, db: Session, zone_id: str) -> Zone | None:
        return db.get(Zone, zone_id)

    def find_nearest(self, db: Session, lat: float, lng: float) -> Zone | None:
        return find_nearest_zone(lat, lng, self.list_zones(db))

    def register(
        self,
        db: Session,
        display_name: str,
        lat: float,
        lng: float,
        now: datetime,
        source: str = "user",
        submitted_by: str | None = None,
    ) -> Zone:
        """Add a zone and its initial unknown/low status row. Caller commits."""
        if not self.in_region(lat, lng):
            raise OutOfBounds(lat, lng)

        display_name = display_name.strip()
        name = sanitize_name(display_name)
        if not name:
            raise InvalidZoneName(display_name)

        if db.scalar(select(Zone.id).where(Zone.name == name)) is not None:
            raise DuplicateZone(name)

        zone = Zone(
            name=name,
            display_name=display_name,
            latitude=lat,
            longitude=lng,
            geohash_prefix=geohash.encode(lat, lng),
            source=source,
            submitted_by=(submitted_by or "anonymous") if source == "user" else submitted_by,
            submitted_at=now if source == "user" else None,
        )
        db.add(zone)
        db.flush()
        db.add(initial_status(zone.id, now))
        logger.info("Registered zone %s (%s) at %.4f,%.4f [%s]",
                    zone.name, zone.geohash_prefix, lat, lng, source)
        return zone


def initial_status(zone_id: str, now: datetime) -> ZonePowerStatus:
    return ZonePowerStatus(
        zone_id=zone_id,
        status="unknown",
        confidence="low",
        buddy_count=0,
        plugged_count=0,
        unplugged_count=0,
        last_change_at=now,
        updated_at=now,
    )
