from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from carpark_pipeline.core.merge import normalize_join_key
from carpark_pipeline.core.models import ChargerAggregate
from carpark_pipeline.providers.parser import StructuralParser
from carpark_pipeline.providers.schema import RecordKind


def _distinct(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(value for value in values if value))


def build_charger_index(
    rows: Iterable[dict[str, Any]],
    key_fn: Callable[[str], str] = normalize_join_key,
) -> dict[str, ChargerAggregate]:
    """Indexes charger rows by join key; a repeated location replaces the earlier row."""
    index: dict[str, ChargerAggregate] = {}
    for row in rows:
        location = row["location_name"]
        index[key_fn(location)] = ChargerAggregate(
            location_name=location,
            count=max(int(row["count"]), 0),
            providers=_distinct(row["providers"]),
            types=_distinct(row["types"]),
        )
    return index


class ChargerListingParser:
    def __init__(
        self,
        parser: StructuralParser | None = None,
        key_fn: Callable[[str], str] = normalize_join_key,
    ) -> None:
        self._parser = parser or StructuralParser()
        self._key_fn = key_fn

    def parse(self, document: str) -> dict[str, ChargerAggregate]:
        rows = self._parser.parse(document, RecordKind.CHARGER_LOCATION)
        return build_charger_index(rows, key_fn=self._key_fn)
