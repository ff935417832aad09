"""Device report aggregation: dedupe consecutive reports and tally the live window."""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from nepa_buddy.config import Settings
from nepa_buddy.models.report import DeviceReport
from nepa_buddy.services.status_engine import Tally

logger = logging.getLogger(__name__)


class ReportAggregator:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def staleness(self) -> timedelta:
        return timedelta(minutes=self.settings.report_staleness_minutes)

    def window_start(self, now: datetime) -> datetime:
        return now - self.staleness

    def last_report(self, db: Session, zone_id: str, device_hash: str) -> DeviceReport | None:
        return db.scalars(
            select(DeviceReport)
            .where(DeviceReport.zone_id == zone_id, DeviceReport.device_hash == device_hash)
            .order_by(DeviceReport.reported_at.desc(), DeviceReport.id.desc())
            .limit(1)
        ).first()

    def is_duplicate(self, last: DeviceReport | None, is_charging: bool, now: datetime) -> bool:
        """Same state as the device's last live report for this zone.

        Once the previous report has aged out of the window, repeating the
        same state records again so the device keeps counting.
        """
        if last is None or last.is_charging != is_charging:
            return False
        # Resubmission is idempotent only inside the window; an aged-out repeat records again
        return last.reported_at >= self.window_start(now)

    def window_reports(self, db: Session, zone_id: str, now: datetime) -> list[DeviceReport]:
        return list(db.scalars(
            select(DeviceReport).where(
                DeviceReport.zone_id == zone_id,
                DeviceReport.reported_at >= self.window_start(now),
                DeviceReport.reported_at <= now,
            )
        ))

    def tally(self, reports: Iterable[DeviceReport]) -> Tally:
        plugged = unplugged = 0
        devices: set[str] = set()
        latest: datetime | None = None
        for r in reports:
            if r.is_charging:
                plugged += 1
            else:
                unplugged += 1
            devices.add(r.device_hash)
            if latest is None or r.reported_at > latest:
                latest = r.reported_at
        return Tally(
            plugged_count=plugged,
            unplugged_count=unplugged,
            buddy_count=len(devices),
            latest_report_at=latest,
        )

    def build_tally(
        self,
        db: Session,
        zone_id: str,
        now: datetime,
        pending: DeviceReport | None = None,
    ) -> Tally:
        """Tally the live window, including a report added but not yet flushed."""
        reports = self.window_reports(db, zone_id, now)
        if (pending is not None and pending not in reports
                and pending.reported_at >= self.window_start(now)):
            reports.append(pending)
        return self.tally(reports)
