"""Zone status transitions and outage history bookkeeping.

Applies a decision to the persisted ZonePowerStatus row:
- same status: refresh confidence, counts and updated_at only
- new status: set last_change_at, close the open outage when leaving off,
  open a new outage when entering off, and return a StatusChangeEvent
"""

import logging
import random
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from nepa_buddy.config import Settings
from nepa_buddy.models.outage import OutageEvent
from nepa_buddy.models.zone import ZonePowerStatus
from nepa_buddy.schemas.status import StatusChangeEvent
from nepa_buddy.services import status_engine
from nepa_buddy.services.status_copy import OUTAGE_CAPTIONS
from nepa_buddy.services.status_engine import Tally

logger = logging.getLogger(__name__)


class StatusStateMachine:
    def __init__(self, settings: Settings):
        self.settings = settings

    def apply(
        self,
        db: Session,
        row: ZonePowerStatus,
        tally: Tally,
        now: datetime,
    ) -> StatusChangeEvent | None:
        decision = status_engine.evaluate(tally, now, self.settings)

        row.plugged_count = tally.plugged_count
        row.unplugged_count = tally.unplugged_count
        row.buddy_count = tally.buddy_count
        row.confidence = decision.confidence
        row.updated_at = now

        if decision.status == row.status:
            return None

        old_status = row.status
        row.status = decision.status
        row.last_change_at = now

        if old_status == "off":
            self.close_outage(db, row.zone_id, now)
        if decision.status == "off":
            self.open_outage(db, row.zone_id, now, tally.buddy_count)

        logger.info("Zone %s: %s -> %s (%s confidence, %d buddies, %d/%d plugged)",
                    row.zone_id, old_status, decision.status, decision.confidence,
                    tally.buddy_count, tally.plugged_count, tally.total)
        return StatusChangeEvent(
            zone_id=row.zone_id,
            old_status=old_status,
            new_status=decision.status,
            buddy_count=tally.buddy_count,
            confidence=decision.confidence,
            timestamp=now,
        )

    def force(
        self,
        row: ZonePowerStatus,
        status: str,
        confidence: str,
        now: datetime,
    ) -> StatusChangeEvent | None:
        """Administrative override. Counts and outage history are left alone."""
        old_status = row.status
        row.status = status
        row.confidence = confidence
        row.updated_at = now

        logger.warning("Zone %s status forced to %s/%s (was %s)",
                       row.zone_id, status, confidence, old_status)
        if old_status == status:
            return None
        row.last_change_at = now
        return StatusChangeEvent(
            zone_id=row.zone_id,
            old_status=old_status,
            new_status=status,
            buddy_count=row.buddy_count,
            confidence=confidence,
            timestamp=now,
            forced=True,
        )

    def open_outage(self, db: Session, zone_id: str, now: datetime, buddy_count: int) -> OutageEvent:
        # A zone never has two open outages
        self.close_outage(db, zone_id, now)
        event = OutageEvent(
            zone_id=zone_id,
            started_at=now,
            buddy_count=buddy_count,
            caption=random.choice(OUTAGE_CAPTIONS),
        )
        db.add(event)
        return event

    def close_outage(self, db: Session, zone_id: str, now: datetime) -> list[OutageEvent]:
        open_events = db.scalars(
            select(OutageEvent).where(OutageEvent.zone_id == zone_id, OutageEvent.ended_at.is_(None))
        ).all()
        for event in open_events:
            event.ended_at = now
            event.duration_minutes = round((now - event.started_at).total_seconds() / 60)
            logger.info("Outage closed for zone %s after %d min", zone_id, event.duration_minutes)
        return list(open_events)
