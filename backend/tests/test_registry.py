"""Tests for zone lookup, registration and OSM import dedupe."""

import pytest

from nepa_buddy.exceptions import DuplicateZone, InvalidZoneName, OutOfBounds, UnknownZone
from nepa_buddy.models.zone import Zone
from nepa_buddy.services.overpass_client import OsmPlace
from nepa_buddy.territory import geohash
from nepa_buddy.territory.definitions import SEED_ZONES
from nepa_buddy.territory.registry import find_nearest_zone, sanitize_name


def _zone(name: str, lat: float, lng: float) -> Zone:
    return Zone(name=name, display_name=name, latitude=lat, longitude=lng, geohash_prefix="")


# --- Nearest zone ---

def test_nearest_zone_picks_closest_centroid():
    zones = [_zone("a", 6.50, 3.30), _zone("b", 6.60, 3.35), _zone("c", 6.45, 3.60)]
    assert find_nearest_zone(6.59, 3.34, zones).name == "b"
    assert find_nearest_zone(6.44, 3.58, zones).name == "c"


def test_nearest_zone_tie_goes_to_first():
    zones = [_zone("first", 6.5, 3.25), _zone("second", 6.5, 3.75)]
    assert find_nearest_zone(6.5, 3.5, zones).name == "first"
    assert find_nearest_zone(6.5, 3.5, list(reversed(zones))).name == "second"


def test_nearest_zone_empty():
    assert find_nearest_zone(6.5, 3.4, []) is None


def test_nearest_zone_uses_raw_degrees():
    """Euclidean over degrees, not great-circle distance."""
    zones = [_zone("north", 6.5995, 3.40), _zone("east", 6.50, 3.50)]
    # Great-circle distance would favour east at this latitude
    assert find_nearest_zone(6.50, 3.40, zones).name == "north"


def test_tracker_find_nearest_returns_status(tracker, yaba):
    tracker.register_zone("Ikeja", 6.6018, 3.3515)
    result = tracker.find_nearest_zone(6.51, 3.37)
    assert result.zone.id == yaba.id
    assert result.status.status == "unknown"


def test_tracker_find_nearest_without_zones(tracker):
    assert tracker.find_nearest_zone(6.5, 3.4) is None


# --- Geohash / slug ---

def test_geohash_known_value():
    assert geohash.encode(57.64911, 10.40744) == "u4pruy"
    assert geohash.encode(57.64911, 10.40744, precision=11) == "u4pruydqqvj"


def test_geohash_length_and_alphabet():
    gh = geohash.encode(6.5095, 3.3711)
    assert len(gh) == 6
    assert all(c in geohash.BASE32 for c in gh)


def test_nearby_points_share_prefix():
    assert geohash.encode(6.5095, 3.3711)[:5] == geohash.encode(6.5100, 3.3715)[:5]


def test_sanitize_name():
    assert sanitize_name("Lekki Phase 1") == "lekki_phase_1"
    assert sanitize_name("Ojo-Alaba  International") == "ojoalaba_international"
    assert sanitize_name("Festac Town!!") == "festac_town"
    assert len(sanitize_name("x" * 80)) == 50
    assert sanitize_name("!!!") == ""


# --- Registration ---

def test_register_zone_creates_unknown_status(tracker):
    zone = tracker.register_zone("Test Area", 6.5, 3.4, submitted_by="dev-1")
    assert zone.name == "test_area"
    assert zone.display_name == "Test Area"
    assert zone.geohash_prefix == geohash.encode(6.5, 3.4)
    assert zone.source == "user"

    status = tracker.get_zone_status(zone.id)
    assert status.status == "unknown"
    assert status.confidence == "low"
    assert status.buddy_count == 0
    assert status.plugged_count == 0
    assert status.unplugged_count == 0


def test_register_zone_out_of_bounds(tracker):
    with pytest.raises(OutOfBounds):
        tracker.register_zone("Somewhere", 10.0, 3.4)
    with pytest.raises(OutOfBounds):
        tracker.register_zone("Lome", 6.13, 1.22)
    assert tracker.list_zones() == []


def test_register_zone_bounds_are_inclusive(tracker):
    zone = tracker.register_zone("Corner", 6.0, 2.5)
    assert zone.latitude == 6.0


def test_register_duplicate_slug(tracker, yaba):
    with pytest.raises(DuplicateZone) as exc:
        tracker.register_zone("YABA!", 6.52, 3.38)
    assert exc.value.name == "yaba"
    assert len(tracker.list_zones()) == 1


def test_register_invalid_name(tracker):
    with pytest.raises(InvalidZoneName):
        tracker.register_zone("???", 6.5, 3.4)


def test_get_unknown_zone(tracker):
    with pytest.raises(UnknownZone):
        tracker.get_zone("missing")
    with pytest.raises(UnknownZone):
        tracker.get_zone_status("missing")


def test_list_zones_sorted_by_display_name(tracker):
    tracker.register_zone("Surulere", 6.4969, 3.3534)
    tracker.register_zone("Ajah", 6.4698, 3.5852)
    tracker.register_zone("Maryland", 6.5710, 3.3670)
    assert [z.display_name for z in tracker.list_zones()] == ["Ajah", "Maryland", "Surulere"]


def test_seed_zones_idempotent(tracker):
    assert tracker.seed_zones(SEED_ZONES) == len(SEED_ZONES)
    assert tracker.seed_zones(SEED_ZONES) == 0
    zones = tracker.list_zones()
    assert len(zones) == len(SEED_ZONES)
    assert all(z.source == "seed" for z in zones)


def test_seed_zones_inside_region(tracker):
    for d in SEED_ZONES:
        assert tracker.registry.in_region(d.latitude, d.longitude), d.display_name


# --- OSM import ---

def test_import_osm_skips_duplicates(tracker, yaba):
    places = [
        OsmPlace(osm_id=1, name="Yaba", latitude=6.52, longitude=3.38),  # known slug
        OsmPlace(osm_id=2, name="Sabo Yaba", latitude=6.5095, longitude=3.3711),  # same cell
        OsmPlace(osm_id=3, name="Agege", latitude=6.6180, longitude=3.3209),
        OsmPlace(osm_id=4, name="Agege Motor Road", latitude=6.6180, longitude=3.3209),
        OsmPlace(osm_id=5, name="Wuse", latitude=9.0765, longitude=7.4983),  # Abuja
    ]
    assert tracker.import_osm_places(places) == 1

    zones = {z.name: z for z in tracker.list_zones()}
    assert set(zones) == {"yaba", "agege"}
    assert zones["agege"].source == "osm"
    assert tracker.get_zone_status(zones["agege"].id).status == "unknown"


def test_import_osm_empty(tracker):
    assert tracker.import_osm_places([]) == 0
