"""Domain exceptions.

Registration failures surface to the caller. UnknownZone on ingest is logged
and the report dropped. StaleWriteConflict is retried by the tracker and only
escapes once retries are exhausted.
"""


class NepaBuddyError(Exception):
    """Base class for all tracker errors."""


class ZoneRegistrationError(NepaBuddyError):
    pass


class DuplicateZone(ZoneRegistrationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Zone '{name}' already exists")


class OutOfBounds(ZoneRegistrationError):
    def __init__(self, latitude: float, longitude: float):
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(f"Location ({latitude}, {longitude}) is outside the Lagos area")


class InvalidZoneName(ZoneRegistrationError):
    def __init__(self, display_name: str):
        self.display_name = display_name
        super().__init__(f"Zone name {display_name!r} has no usable characters")


class UnknownZone(NepaBuddyError):
    def __init__(self, zone_id: str):
        self.zone_id = zone_id
        super().__init__(f"Zone {zone_id} not found")


class StaleWriteConflict(NepaBuddyError):
    def __init__(self, zone_id: str, attempts: int):
        self.zone_id = zone_id
        self.attempts = attempts
        super().__init__(f"Status for zone {zone_id} kept changing underneath us ({attempts} attempts)")


class DeliveryFailure(NepaBuddyError):
    pass
