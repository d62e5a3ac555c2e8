from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

STREET_ZONE_NAME_PREFIX = "Street Parking Zone - "
DEFAULT_OPENING_HOURS = "24-hour"
DEFAULT_CONTACT_NUMBER = "not provided"


@dataclass(frozen=True)
class StreetParking:
    total: int = 0
    available: int = 0
    fee: str = ""


@dataclass(frozen=True)
class ChargingInfo:
    station_count: int = 0
    provider: str = ""
    connector_type: str = ""
    has_charging: bool = False


@dataclass(frozen=True)
class ParkingFacility:
    name: str
    address: str
    latitude: float
    longitude: float
    capacity: int = 0
    is_street_parking: bool = False
    street_parking: StreetParking = field(default_factory=StreetParking)
    charging: ChargingInfo = field(default_factory=ChargingInfo)
    opening_hours: str = DEFAULT_OPENING_HOURS
    contact_number: str = DEFAULT_CONTACT_NUMBER
    facilities: tuple[str, ...] = ()
    display_info: str = ""
    last_updated: datetime | None = None


@dataclass(frozen=True)
class ChargerAggregate:
    location_name: str
    count: int = 0
    providers: tuple[str, ...] = ()
    types: tuple[str, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    records: tuple[ParkingFacility, ...]
    captured_at: datetime
    count: int

    def age(self, now: datetime) -> timedelta:
        return now - self.captured_at

    def is_fresh(self, now: datetime, max_age: timedelta) -> bool:
        return self.age(now) < max_age
