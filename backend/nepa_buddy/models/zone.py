import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from nepa_buddy.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Zone(Base):
    """A named neighbourhood tracked for power status. Never deleted."""
    __tablename__ = "zones"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(50), nullable=False, unique=True, index=True)
    display_name = Column(String(120), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    geohash_prefix = Column(String(6), nullable=False, index=True)
    source = Column(String(10), nullable=False, default="user")  # seed, osm, user
    submitted_by = Column(String(64))
    submitted_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())


class ZonePowerStatus(Base):
    """Derived status row, one per zone. Written only by the tracker."""
    __tablename__ = "zone_power_status"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(String(36), ForeignKey("zones.id"), nullable=False, unique=True, index=True)
    status = Column(String(12), nullable=False, default="unknown")  # on, off, recovering, unknown
    confidence = Column(String(8), nullable=False, default="low")  # low, medium, high
    buddy_count = Column(Integer, nullable=False, default=0)
    plugged_count = Column(Integer, nullable=False, default=0)
    unplugged_count = Column(Integer, nullable=False, default=0)
    last_change_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    version = Column(Integer, nullable=False)

    zone = relationship(Zone, lazy="joined")

    __mapper_args__ = {"version_id_col": version}
