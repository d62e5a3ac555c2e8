from __future__ import annotations

import enum
import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class RecordKind(str, enum.Enum):
    GARAGE = "garage"
    STREET_ZONE = "street_zone"
    CHARGER_LOCATION = "charger_location"


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def to_int_or_zero(value: Any) -> int:
    match = _LEADING_INT.match(to_text(value))
    return int(match.group(1)) if match else 0


def to_float_or_nan(value: Any) -> float:
    match = _LEADING_FLOAT.match(to_text(value))
    return float(match.group(1)) if match else math.nan


@dataclass(frozen=True)
class FieldRule:
    """One extracted field.

    ``selector`` is a CSS selector relative to the record element (``None``
    targets the record element itself). Text content is read unless
    ``attribute`` is set. ``many`` collects every match in document order.
    """

    name: str
    selector: str | None = None
    attribute: str | None = None
    many: bool = False
    convert: Callable[[Any], Any] = to_text
    default: Any = ""


@dataclass(frozen=True)
class RecordSchema:
    kind: str
    selector: str
    fields: tuple[FieldRule, ...]
    nested: dict[str, RecordSchema] = field(default_factory=dict)


STREET_PARKING_INFO_SCHEMA = RecordSchema(
    kind="street_parking_info",
    selector=".street-parking-info",
    fields=(
        FieldRule("total", ".total-spaces", convert=to_int_or_zero, default=0),
        FieldRule("available", ".available-spaces", convert=to_int_or_zero, default=0),
        FieldRule("fee", ".parking-fee"),
    ),
)

GARAGE_SCHEMA = RecordSchema(
    kind=RecordKind.GARAGE.value,
    selector=".carpark-item",
    fields=(
        FieldRule("name", ".carpark-name"),
        FieldRule("address", ".carpark-address"),
        FieldRule("capacity", ".carpark-capacity", convert=to_int_or_zero, default=0),
        FieldRule("latitude", attribute="data-lat", convert=to_float_or_nan, default=math.nan),
        FieldRule("longitude", attribute="data-lng", convert=to_float_or_nan, default=math.nan),
        FieldRule("opening_hours", ".opening-hours"),
        FieldRule("contact_number", ".contact"),
        FieldRule("facilities", ".facilities", many=True),
    ),
    nested={"street_parking": STREET_PARKING_INFO_SCHEMA},
)

STREET_ZONE_SCHEMA = RecordSchema(
    kind=RecordKind.STREET_ZONE.value,
    selector=".street-parking-zone",
    fields=(
        FieldRule("zone_name", ".zone-name"),
        FieldRule("address", ".zone-address"),
        FieldRule("total", ".total-spaces", convert=to_int_or_zero, default=0),
        FieldRule("latitude", attribute="data-lat", convert=to_float_or_nan, default=math.nan),
        FieldRule("longitude", attribute="data-lng", convert=to_float_or_nan, default=math.nan),
        FieldRule("fee", ".parking-fee"),
    ),
)

CHARGER_LOCATION_SCHEMA = RecordSchema(
    kind=RecordKind.CHARGER_LOCATION.value,
    selector=".charger-location",
    fields=(
        FieldRule("location_name", ".location-name"),
        FieldRule("providers", ".provider", many=True),
        FieldRule("types", ".charger-type", many=True),
        FieldRule("count", ".charger-count", convert=to_int_or_zero, default=0),
    ),
)

DEFAULT_SCHEMAS: dict[RecordKind, RecordSchema] = {
    RecordKind.GARAGE: GARAGE_SCHEMA,
    RecordKind.STREET_ZONE: STREET_ZONE_SCHEMA,
    RecordKind.CHARGER_LOCATION: CHARGER_LOCATION_SCHEMA,
}
