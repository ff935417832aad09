import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nepa_buddy.config import settings
from nepa_buddy.database import SessionLocal, init_db
from nepa_buddy.exceptions import (
    DuplicateZone,
    InvalidZoneName,
    OutOfBounds,
    StaleWriteConflict,
    UnknownZone,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level)
    init_db()
    from nepa_buddy.services.event_bus import StatusEventBus
    from nepa_buddy.services.notifications import NotificationDispatcher, build_deliverer
    from nepa_buddy.services.tracker import PowerTracker
    from nepa_buddy.tasks.scheduler import start_scheduler, stop_scheduler
    from nepa_buddy.territory.definitions import SEED_ZONES

    bus = StatusEventBus()
    tracker = PowerTracker(SessionLocal, settings, event_bus=bus)
    bus.subscribe(NotificationDispatcher(build_deliverer(), tracker.zone_display_name))
    if settings.seed_zones:
        tracker.seed_zones(SEED_ZONES)
    app.state.tracker = tracker
    start_scheduler(tracker)
    yield
    stop_scheduler()


app = FastAPI(
    title="NEPA Buddy",
    description="Crowd-sourced power supply tracking for Lagos neighbourhoods",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DuplicateZone)
async def duplicate_zone_handler(request: Request, exc: DuplicateZone):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(OutOfBounds)
@app.exception_handler(InvalidZoneName)
async def invalid_zone_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(UnknownZone)
async def unknown_zone_handler(request: Request, exc: UnknownZone):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StaleWriteConflict)
async def stale_write_handler(request: Request, exc: StaleWriteConflict):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


from nepa_buddy.routers import admin, outage, reports, status, zones  # noqa: E402

app.include_router(zones.router, prefix="/api/v1")
app.include_router(status.router, prefix="/api/v1")
app.include_router(reports.router, prefix="/api/v1")
app.include_router(outage.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok"}
