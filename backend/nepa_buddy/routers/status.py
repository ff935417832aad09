import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from nepa_buddy.dependencies import get_tracker
from nepa_buddy.schemas.status import ZonePowerStatusOut
from nepa_buddy.services.tracker import PowerTracker

router = APIRouter(prefix="/status", tags=["status"])

KEEPALIVE_SECONDS = 15


@router.get("/", response_model=list[ZonePowerStatusOut])
def list_statuses(tracker: PowerTracker = Depends(get_tracker)):
    """Current power status for every zone."""
    return tracker.get_all_zone_statuses()


@router.get("/stream")
async def stream_status_changes(request: Request, tracker: PowerTracker = Depends(get_tracker)):
    """Server-Sent Events feed of status transitions. Best effort: clients
    that fall behind miss events and should refetch /status/ on reconnect."""
    queue, unsubscribe = tracker.event_bus.queue_subscription(asyncio.get_running_loop())

    async def events():
        try:
            while not await request.is_disconnected():
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"event: status\ndata: {event.model_dump_json()}\n\n"
        finally:
            unsubscribe()

    return StreamingResponse(events(), media_type="text/event-stream")


@router.get("/{zone_id}", response_model=ZonePowerStatusOut)
def get_zone_status(zone_id: str, tracker: PowerTracker = Depends(get_tracker)):
    return tracker.get_zone_status(zone_id)
