"""APScheduler setup for the stale-report status sweep and the optional OSM zone import."""

import asyncio
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from nepa_buddy.config import settings
from nepa_buddy.services.tracker import PowerTracker

logger = logging.getLogger(__name__)

_scheduler: BackgroundScheduler | None = None


def _run_status_sweep(tracker: PowerTracker):
    try:
        tracker.recompute_all()
    except Exception as e:
        logger.error("Status sweep job failed: %s", e)


def _run_osm_import(tracker: PowerTracker):
    from nepa_buddy.services.osm_import import import_osm_zones
    loop = asyncio.new_event_loop()
    try:
        loop.run_until_complete(import_osm_zones(tracker))
    except Exception as e:
        logger.error("OSM import job failed: %s", e)
    finally:
        loop.close()


def start_scheduler(tracker: PowerTracker):
    global _scheduler
    _scheduler = BackgroundScheduler()

    _scheduler.add_job(
        _run_status_sweep,
        "interval",
        minutes=settings.status_sweep_interval,
        args=[tracker],
        id="status_sweep",
        name="Zone status sweep",
        max_instances=1,
    )

    if settings.osm_import_interval > 0:
        _scheduler.add_job(
            _run_osm_import,
            "interval",
            minutes=settings.osm_import_interval,
            args=[tracker],
            id="osm_import",
            name="OSM zone import",
            max_instances=1,
        )

    _scheduler.start()
    logger.info(
        "Scheduler started: status sweep every %d min, OSM import %s",
        settings.status_sweep_interval,
        f"every {settings.osm_import_interval} min" if settings.osm_import_interval > 0 else "manual only",
    )


def stop_scheduler():
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        _scheduler = None
