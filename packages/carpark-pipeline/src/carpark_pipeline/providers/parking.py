from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from devkit.timezone import now_hkt

from carpark_pipeline.core.models import (
    DEFAULT_CONTACT_NUMBER,
    DEFAULT_OPENING_HOURS,
    STREET_ZONE_NAME_PREFIX,
    ChargingInfo,
    ParkingFacility,
    StreetParking,
)
from carpark_pipeline.providers.parser import StructuralParser
from carpark_pipeline.providers.schema import RecordKind


def build_garage(row: dict[str, Any], updated_at: datetime) -> ParkingFacility:
    street = row.get("street_parking") or {}
    return ParkingFacility(
        name=row["name"],
        address=row["address"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        capacity=max(int(row["capacity"]), 0),
        is_street_parking=False,
        street_parking=StreetParking(
            total=max(int(street.get("total", 0)), 0),
            available=max(int(street.get("available", 0)), 0),
            fee=street.get("fee", ""),
        ),
        charging=ChargingInfo(),
        opening_hours=row["opening_hours"] or DEFAULT_OPENING_HOURS,
        contact_number=row["contact_number"] or DEFAULT_CONTACT_NUMBER,
        facilities=tuple(row["facilities"]),
        last_updated=updated_at,
    )


def build_street_zone(row: dict[str, Any], updated_at: datetime) -> ParkingFacility:
    # No live occupancy feed exists for street zones.
    total = max(int(row["total"]), 0)
    return ParkingFacility(
        name=f"{STREET_ZONE_NAME_PREFIX}{row['zone_name']}",
        address=row["address"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        capacity=total,
        is_street_parking=True,
        street_parking=StreetParking(total=total, available=total, fee=row["fee"]),
        charging=ChargingInfo(),
        opening_hours="",
        contact_number=DEFAULT_CONTACT_NUMBER,
        facilities=(),
        last_updated=updated_at,
    )


class ParkingListingParser:
    """Extracts garages followed by street-parking zones from the parking listing."""

    def __init__(
        self,
        parser: StructuralParser | None = None,
        clock: Callable[[], datetime] = now_hkt,
    ) -> None:
        self._parser = parser or StructuralParser()
        self._clock = clock

    def parse(self, document: str) -> list[ParkingFacility]:
        updated_at = self._clock()
        soup = self._parser.load(document)
        garages = self._parser.parse(soup, RecordKind.GARAGE, lambda row: build_garage(row, updated_at))
        zones = self._parser.parse(soup, RecordKind.STREET_ZONE, lambda row: build_street_zone(row, updated_at))
        return garages + zones
