from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace

from carpark_pipeline.core.exceptions import MergeError
from carpark_pipeline.core.models import ChargerAggregate, ChargingInfo, ParkingFacility

logger = logging.getLogger(__name__)

DISPLAY_SEPARATOR = " | "


def normalize_join_key(name: str) -> str:
    return " ".join(name.split()).casefold()


def format_display_info(facility: ParkingFacility) -> str:
    info: list[str] = []
    street = facility.street_parking
    if facility.is_street_parking:
        info.append(f"Street parking: {facility.capacity} units")
        if street.fee:
            info.append(f"Fee: {street.fee}")
    else:
        info.append(f"Parking units: {facility.capacity}")
        if street.total > 0:
            info.append(f"Street parking: {street.total} units")
            if street.fee:
                info.append(f"Street fee: {street.fee}")
    if facility.charging.has_charging:
        info.append(f"Charging stations: {facility.charging.station_count}")
    if facility.opening_hours:
        info.append(f"Hours: {facility.opening_hours}")
    return DISPLAY_SEPARATOR.join(info)


def charging_from_aggregate(aggregate: ChargerAggregate) -> ChargingInfo:
    return ChargingInfo(
        station_count=aggregate.count,
        provider=", ".join(aggregate.providers),
        connector_type=", ".join(aggregate.types),
        has_charging=True,
    )


@dataclass(frozen=True)
class MergeResult:
    facilities: list[ParkingFacility]
    unmatched: list[ChargerAggregate]
    error_count: int = 0


class ChargingMerger:
    """Joins charger aggregates onto facilities by normalized facility name.

    Facilities keep their display names; only the lookup key is normalized.
    A facility whose join or display derivation fails is kept without
    charging data instead of being dropped.
    """

    def __init__(
        self,
        display_formatter: Callable[[ParkingFacility], str] = format_display_info,
        key_fn: Callable[[str], str] = normalize_join_key,
    ) -> None:
        self._display_formatter = display_formatter
        self._key_fn = key_fn

    def merge(
        self,
        facilities: Iterable[ParkingFacility],
        aggregates: Mapping[str, ChargerAggregate],
    ) -> MergeResult:
        merged: list[ParkingFacility] = []
        matched_keys: set[str] = set()
        errors = 0
        for facility in facilities:
            try:
                key = self._key_fn(facility.name)
                merged.append(self._merge_one(facility, aggregates.get(key)))
                if key in aggregates:
                    matched_keys.add(key)
            except Exception as exc:
                errors += 1
                error = MergeError(f"{facility.name!r}: {exc}")
                logger.error(
                    "facility_merge_failed",
                    extra={"component": "carpark_pipeline", "facility": facility.name, "error": str(error)},
                )
                merged.append(replace(facility, charging=ChargingInfo()))

        unmatched = [aggregate for key, aggregate in aggregates.items() if key not in matched_keys]
        if unmatched:
            logger.info(
                "charger_aggregates_unmatched",
                extra={
                    "component": "carpark_pipeline",
                    "unmatched_count": len(unmatched),
                    "locations": [aggregate.location_name for aggregate in unmatched[:20]],
                },
            )
        return MergeResult(facilities=merged, unmatched=unmatched, error_count=errors)

    def _merge_one(self, facility: ParkingFacility, aggregate: ChargerAggregate | None) -> ParkingFacility:
        charging = charging_from_aggregate(aggregate) if aggregate is not None else ChargingInfo()
        merged = replace(facility, charging=charging)
        return replace(merged, display_info=self._display_formatter(merged))
