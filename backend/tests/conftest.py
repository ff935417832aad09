from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nepa_buddy.config import Settings
from nepa_buddy.database import init_db
from nepa_buddy.services.event_bus import StatusEventBus
from nepa_buddy.services.tracker import PowerTracker

YABA = ("Yaba", 6.5095, 3.3711)


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 3, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def app_settings():
    return Settings(_env_file=None, seed_zones=False, osm_import_interval=0)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def tracker(session_factory, app_settings, clock):
    return PowerTracker(session_factory, app_settings, event_bus=StatusEventBus(), clock=clock)


@pytest.fixture
def events(tracker):
    """Status change events published by the tracker, in order."""
    received = []
    tracker.event_bus.subscribe(received.append)
    return received


@pytest.fixture
def yaba(tracker):
    return tracker.register_zone(*YABA)


@pytest.fixture
def report_many(tracker):
    """Send one report per device: `plugged` charging devices, then `unplugged` others."""
    def _report(zone_id, plugged: int, unplugged: int, prefix: str = "dev"):
        for i in range(plugged):
            tracker.record_report(zone_id, f"{prefix}-on-{i}", True)
        for i in range(unplugged):
            tracker.record_report(zone_id, f"{prefix}-off-{i}", False)
    return _report
