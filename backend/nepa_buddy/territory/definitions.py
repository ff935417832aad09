from dataclasses import dataclass


@dataclass(frozen=True)
class ZoneDefinition:
    display_name: str
    latitude: float
    longitude: float


# Well-known Lagos neighbourhoods seeded on first start. More arrive through
# the OSM import and user submissions.
SEED_ZONES = [
    ZoneDefinition(display_name="Lekki Phase 1", latitude=6.4478, longitude=3.4723),
    ZoneDefinition(display_name="Victoria Island", latitude=6.4281, longitude=3.4219),
    ZoneDefinition(display_name="Ikoyi", latitude=6.4550, longitude=3.4346),
    ZoneDefinition(display_name="Ajah", latitude=6.4698, longitude=3.5852),
    ZoneDefinition(display_name="Yaba", latitude=6.5095, longitude=3.3711),
    ZoneDefinition(display_name="Surulere", latitude=6.4969, longitude=3.3481),
    ZoneDefinition(display_name="Gbagada", latitude=6.5535, longitude=3.3873),
    ZoneDefinition(display_name="Maryland", latitude=6.5710, longitude=3.3667),
    ZoneDefinition(display_name="Ikeja", latitude=6.6018, longitude=3.3515),
    ZoneDefinition(display_name="Magodo", latitude=6.6167, longitude=3.3833),
    ZoneDefinition(display_name="Festac Town", latitude=6.4667, longitude=3.2833),
    ZoneDefinition(display_name="Ikorodu", latitude=6.6194, longitude=3.5105),
]
