"""PowerTracker: the service object owning zones, reports and zone status.

Every write to a zone's status row runs as one unit of work under that
zone's lock: read the row, append the report (if any), tally the live
window, apply the decision, commit. Different zones never wait on each
other. The row carries a version counter, so a writer in another process
surfaces as StaleDataError; the whole unit of work is then retried against
a fresh read. Status change events are published after commit, outside
the zone lock.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import TypeVar

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from nepa_buddy.config import Settings
from nepa_buddy.exceptions import DuplicateZone, UnknownZone, StaleWriteConflict, ZoneRegistrationError
from nepa_buddy.models.outage import OutageEvent
from nepa_buddy.models.report import DeviceReport, PowerIssueReport, UserFeedback
from nepa_buddy.models.zone import Zone, ZonePowerStatus
from nepa_buddy.schemas.outage import OutageEventOut
from nepa_buddy.schemas.report import IssueReportIn, IssueReportOut, ReportAck
from nepa_buddy.schemas.status import NearestZoneOut, StatusChangeEvent, ZonePowerStatusOut
from nepa_buddy.schemas.zone import ZoneOut
from nepa_buddy.services.event_bus import StatusEventBus
from nepa_buddy.services.overpass_client import OsmPlace
from nepa_buddy.services.report_aggregator import ReportAggregator
from nepa_buddy.services.status_machine import StatusStateMachine
from nepa_buddy.territory import geohash
from nepa_buddy.territory.definitions import ZoneDefinition
from nepa_buddy.territory.registry import ZoneRegistry, initial_status, sanitize_name

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Zones closer than this geohash prefix are treated as the same place on import
OSM_DUPLICATE_PREFIX = 5


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_naive_utc(dt: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


class PowerTracker:
    def __init__(
        self,
        session_factory: sessionmaker,
        settings: Settings,
        event_bus: StatusEventBus | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.event_bus = event_bus or StatusEventBus()
        self.clock = clock
        self.registry = ZoneRegistry(settings)
        self.aggregator = ReportAggregator(settings)
        self.machine = StatusStateMachine(settings)

        self._zone_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._zone_names: dict[str, str] = {}

    def now(self) -> datetime:
        return to_naive_utc(self.clock())

    # --- Zones ---

    def register_zone(
        self,
        display_name: str,
        latitude: float,
        longitude: float,
        submitted_by: str | None = None,
        source: str = "user",
    ) -> ZoneOut:
        with self.session_factory() as db:
            try:
                zone = self.registry.register(
                    db, display_name, latitude, longitude, self.now(),
                    source=source, submitted_by=submitted_by,
                )
                db.commit()
            except IntegrityError:
                # Lost a race with another submission of the same slug
                db.rollback()
                raise DuplicateZone(sanitize_name(display_name))
            return ZoneOut.model_validate(zone)

    def seed_zones(self, definitions: Iterable[ZoneDefinition]) -> int:
        """Insert seed zones that are not present yet. Returns how many were added."""
        added = 0
        for d in definitions:
            try:
                self.register_zone(d.display_name, d.latitude, d.longitude, source="seed")
                added += 1
            except DuplicateZone:
                continue
            except ZoneRegistrationError as e:
                logger.warning("Skipping seed zone %s: %s", d.display_name, e)
        if added:
            logger.info("Seeded %d zones", added)
        return added

    def import_osm_places(self, places: Iterable[OsmPlace]) -> int:
        """Insert OSM places, skipping known slugs and near-duplicate locations."""
        now = self.now()
        imported = 0
        with self.session_factory() as db:
            existing = db.execute(select(Zone.name, Zone.geohash_prefix)).all()
            names = {row.name for row in existing}
            prefixes = {row.geohash_prefix[:OSM_DUPLICATE_PREFIX] for row in existing}

            for place in places:
                name = sanitize_name(place.name)
                prefix = geohash.encode(place.latitude, place.longitude)[:OSM_DUPLICATE_PREFIX]
                if not name or name in names or prefix in prefixes:
                    continue
                if not self.registry.in_region(place.latitude, place.longitude):
                    continue
                self.registry.register(db, place.name, place.latitude, place.longitude, now, source="osm")
                names.add(name)
                prefixes.add(prefix)
                imported += 1

            db.commit()
        logger.info("OSM import: %d new zones", imported)
        return imported

    def list_zones(self) -> list[ZoneOut]:
        with self.session_factory() as db:
            return [ZoneOut.model_validate(z) for z in self.registry.list_zones(db)]

    def get_zone(self, zone_id: str) -> ZoneOut:
        with self.session_factory() as db:
            zone = self.registry.get_zone(db, zone_id)
            if zone is None:
                raise UnknownZone(zone_id)
            return ZoneOut.model_validate(zone)

    def zone_display_name(self, zone_id: str) -> str | None:
        name = self._zone_names.get(zone_id)
        if name is None:
            with self.session_factory() as db:
                zone = self.registry.get_zone(db, zone_id)
                if zone is None:
                    return None
                name = self._zone_names[zone_id] = zone.display_name
        return name

    def find_nearest_zone(self, latitude: float, longitude: float) -> NearestZoneOut | None:
        with self.session_factory() as db:
            zone = self.registry.find_nearest(db, latitude, longitude)
            if zone is None:
                return None
            row = self._find_status_row(db, zone.id)
            return NearestZoneOut(
                zone=ZoneOut.model_validate(zone),
                status=ZonePowerStatusOut.model_validate(row) if row is not None else None,
            )

    # --- Status queries ---

    def get_zone_status(self, zone_id: str) -> ZonePowerStatusOut:
        with self.session_factory() as db:
            row = self._find_status_row(db, zone_id)
            if row is not None:
                return ZonePowerStatusOut.model_validate(row)
            zone = self.registry.get_zone(db, zone_id)
            if zone is None:
                raise UnknownZone(zone_id)
            now = self.now()
            return ZonePowerStatusOut(
                zone_id=zone_id, last_change_at=now, updated_at=now,
                zone=ZoneOut.model_validate(zone),
            )

    def get_all_zone_statuses(self) -> list[ZonePowerStatusOut]:
        with self.session_factory() as db:
            rows = db.scalars(select(ZonePowerStatus).order_by(ZonePowerStatus.id)).all()
            return [ZonePowerStatusOut.model_validate(r) for r in rows]

    # --- Ingest ---

    def record_report(
        self,
        zone_id: str,
        device_hash: str,
        is_charging: bool,
        at: datetime | None = None,
        source: str = "charging",
    ) -> ReportAck:
        """Record one device signal and recompute the zone.

        Reports for unknown zones are logged and dropped.
        """
        def work(db: Session, now: datetime):
            return self._apply_report(db, now, zone_id, device_hash, is_charging, at, source)

        try:
            return self._locked_write(zone_id, work)
        except UnknownZone:
            logger.warning("Dropping %s report from %s: unknown zone %s", source, device_hash, zone_id)
            return ReportAck(status="dropped", zone_id=zone_id, reason="unknown_zone")

    def submit_feedback(self, zone_id: str, device_hash: str, feedback_type: str) -> ReportAck:
        """Store explicit feedback; light_on/light_off also count as device reports."""
        def work(db: Session, now: datetime):
            if feedback_type in ("light_on", "light_off"):
                ack, event = self._apply_report(db, now, zone_id, device_hash,
                                                feedback_type == "light_on", None, "feedback")
            else:
                if self.registry.get_zone(db, zone_id) is None:
                    raise UnknownZone(zone_id)
                ack, event = ReportAck(status="recorded", zone_id=zone_id), None
            db.add(UserFeedback(zone_id=zone_id, device_hash=device_hash,
                                feedback_type=feedback_type, reported_at=now))
            return ack, event

        try:
            return self._locked_write(zone_id, work)
        except UnknownZone:
            logger.warning("Dropping %s feedback from %s: unknown zone %s", feedback_type, device_hash, zone_id)
            return ReportAck(status="dropped", zone_id=zone_id, reason="unknown_zone")

    def submit_issue_report(self, report: IssueReportIn) -> IssueReportOut:
        """Persist an issue report. With a known zone and a device hash it also
        counts as a power signal, written in the same transaction."""
        def issue_row(now: datetime) -> PowerIssueReport:
            return PowerIssueReport(
                zone_id=report.zone_id,
                location_description=report.location_description.strip(),
                problem_types=list(report.problem_types),
                power_available=report.power_available,
                device_hash=report.device_hash,
                additional_notes=(report.additional_notes or "").strip() or None,
                status="pending",
                reported_at=now,
            )

        if report.zone_id and report.device_hash:
            def work(db: Session, now: datetime):
                _, event = self._apply_report(db, now, report.zone_id, report.device_hash,
                                              report.power_available, None, "issue_report")
                row = issue_row(now)
                db.add(row)
                return row, event

            try:
                return self._locked_write(report.zone_id, work, output=IssueReportOut.model_validate)
            except UnknownZone:
                logger.warning("Issue report for unknown zone %s stored without a power signal",
                               report.zone_id)

        with self.session_factory() as db:
            row = issue_row(self.now())
            db.add(row)
            db.commit()
            return IssueReportOut.model_validate(row)

    def list_issue_reports(self, zone_id: str | None = None, limit: int = 100) -> list[IssueReportOut]:
        with self.session_factory() as db:
            q = select(PowerIssueReport)
            if zone_id:
                q = q.where(PowerIssueReport.zone_id == zone_id)
            q = q.order_by(PowerIssueReport.reported_at.desc(), PowerIssueReport.id.desc()).limit(limit)
            return [IssueReportOut.model_validate(r) for r in db.scalars(q)]

    def _apply_report(
        self,
        db: Session,
        now: datetime,
        zone_id: str,
        device_hash: str,
        is_charging: bool,
        at: datetime | None,
        source: str,
    ) -> tuple[ReportAck, StatusChangeEvent | None]:
        row = self._status_row(db, zone_id, now)
        reported_at = min(to_naive_utc(at), now) if at is not None else now

        last = self.aggregator.last_report(db, zone_id, device_hash)
        pending = None
        if self.aggregator.is_duplicate(last, is_charging, now):
            logger.debug("Duplicate %s report from %s for zone %s", is_charging, device_hash, zone_id)
        else:
            pending = DeviceReport(zone_id=zone_id, device_hash=device_hash, is_charging=is_charging,
                                   source=source, reported_at=reported_at)
            db.add(pending)

        tally = self.aggregator.build_tally(db, zone_id, now, pending)
        event = self.machine.apply(db, row, tally, now)
        ack = ReportAck(
            status="recorded" if pending is not None else "duplicate",
            zone_id=zone_id,
            zone_status=row.status,
        )
        return ack, event

    # --- Recompute / override ---

    def recompute_zone(self, zone_id: str) -> ZonePowerStatusOut:
        return self._recompute(zone_id)[0]

    def recompute_all(self) -> int:
        """Recompute zones that still hold a live status. Returns the number of transitions."""
        with self.session_factory() as db:
            zone_ids = db.scalars(
                select(ZonePowerStatus.zone_id).where(or_(
                    ZonePowerStatus.status != "unknown",
                    ZonePowerStatus.plugged_count > 0,
                    ZonePowerStatus.unplugged_count > 0,
                ))
            ).all()

        transitions = 0
        for zone_id in zone_ids:
            try:
                _, changed = self._recompute(zone_id)
            except StaleWriteConflict as e:
                logger.error("Recompute skipped: %s", e)
                continue
            transitions += changed
        if zone_ids:
            logger.info("Recomputed %d zones, %d transitions", len(zone_ids), transitions)
        return transitions

    def force_status(self, zone_id: str, status: str, confidence: str) -> ZonePowerStatusOut:
        """Operator/testing override: bypasses the decision function."""
        def work(db: Session, now: datetime):
            row = self._status_row(db, zone_id, now)
            return row, self.machine.force(row, status, confidence, now)

        return self._locked_write(zone_id, work, output=ZonePowerStatusOut.model_validate)

    def _recompute(self, zone_id: str) -> tuple[ZonePowerStatusOut, bool]:
        def work(db: Session, now: datetime):
            row = self._status_row(db, zone_id, now)
            event = self.machine.apply(db, row, self.aggregator.build_tally(db, zone_id, now), now)
            return (row, event is not None), event

        return self._locked_write(
            zone_id, work,
            output=lambda result: (ZonePowerStatusOut.model_validate(result[0]), result[1]),
        )

    # --- Outage history ---

    def list_outage_events(
        self,
        zone_id: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int = 20,
    ) -> list[OutageEventOut]:
        with self.session_factory() as db:
            q = select(OutageEvent)
            if zone_id:
                q = q.where(OutageEvent.zone_id == zone_id)
            if since is not None:
                q = q.where(OutageEvent.started_at >= to_naive_utc(since))
            if until is not None:
                q = q.where(OutageEvent.started_at <= to_naive_utc(until))
            q = q.order_by(OutageEvent.started_at.desc(), OutageEvent.id.desc()).limit(limit)
            return [OutageEventOut.model_validate(e) for e in db.scalars(q)]

    # --- Internals ---

    def _zone_lock(self, zone_id: str) -> threading.Lock:
        # Locks exist only for registered zones; zones are never deleted
        if self.zone_display_name(zone_id) is None:
            raise UnknownZone(zone_id)
        with self._locks_guard:
            lock = self._zone_locks.get(zone_id)
            if lock is None:
                lock = self._zone_locks[zone_id] = threading.Lock()
            return lock

    def _locked_write(
        self,
        zone_id: str,
        work: Callable[[Session, datetime], tuple[T, StatusChangeEvent | None]],
        output: Callable[[T], object] | None = None,
    ):
        result, event = self._write_under_lock(zone_id, work, output)
        # Published after the zone lock is released
        if event is not None:
            self.event_bus.publish(event)
        return result

    def _write_under_lock(self, zone_id, work, output):
        attempts = max(self.settings.stale_write_retries, 1)
        with self._zone_lock(zone_id):
            for attempt in range(1, attempts + 1):
                with self.session_factory() as db:
                    try:
                        result, event = work(db, self.now())
                        db.commit()
                    except StaleDataError:
                        db.rollback()
                        logger.warning("Stale write on zone %s (attempt %d/%d), retrying",
                                       zone_id, attempt, attempts)
                        continue
                    if output is not None:
                        result = output(result)
                return result, event
        raise StaleWriteConflict(zone_id, attempts)

    def _find_status_row(self, db: Session, zone_id: str) -> ZonePowerStatus | None:
        return db.scalars(select(ZonePowerStatus).where(ZonePowerStatus.zone_id == zone_id)).first()

    def _status_row(self, db: Session, zone_id: str, now: datetime) -> ZonePowerStatus:
        row = self._find_status_row(db, zone_id)
        if row is not None:
            return row
        if self.registry.get_zone(db, zone_id) is None:
            raise UnknownZone(zone_id)
        logger.info("Zone %s had no status row; creating one", zone_id)
        row = initial_status(zone_id, now)
        db.add(row)
        db.flush()
        return row
