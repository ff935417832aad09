from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.sql import func

from nepa_buddy.database import Base


class DeviceReport(Base):
    """Append-only raw power signal from one anonymous device."""
    __tablename__ = "device_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(String(36), nullable=False, index=True)
    device_hash = Column(String(64), nullable=False)
    is_charging = Column(Boolean, nullable=False)
    source = Column(String(20), nullable=False, default="charging")  # charging, feedback, issue_report
    reported_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_device_reports_zone_reported", "zone_id", "reported_at"),
        Index("ix_device_reports_zone_device", "zone_id", "device_hash"),
    )


class UserFeedback(Base):
    __tablename__ = "user_feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(String(36), nullable=False, index=True)
    device_hash = Column(String(64))
    feedback_type = Column(String(20), nullable=False)  # light_on, light_off, gen_mode, inverter
    reported_at = Column(DateTime, nullable=False)


class PowerIssueReport(Base):
    """Free-text problem report. Tags and notes never feed the status decision."""
    __tablename__ = "power_issue_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(String(36), index=True)
    location_description = Column(String(255), nullable=False)
    problem_types = Column(JSON, nullable=False)  # ["no_power", "low_voltage", ...]
    power_available = Column(Boolean, nullable=False)
    device_hash = Column(String(64))
    additional_notes = Column(Text)
    status = Column(String(20), nullable=False, default="pending")
    reported_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
