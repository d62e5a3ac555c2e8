from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from carpark_pipeline.core.models import ParkingFacility, StreetParking
from carpark_pipeline.providers.fetcher import DocumentFetcher, SourceDescriptor

PARKING_HTML = """
<html><body>
  <div class="carpark-item" data-lat="22.30" data-lng="114.17">
    <span class="carpark-name">Garage X</span>
    <span class="carpark-address">1 Nathan Road</span>
    <span class="carpark-capacity">50</span>
  </div>
  <div class="street-parking-zone" data-lat="22.31" data-lng="114.18">
    <span class="zone-name">Zone Y</span>
    <span class="zone-address">Canton Road</span>
    <span class="total-spaces">20</span>
    <span class="parking-fee">$2/hr</span>
  </div>
</body></html>
"""

CHARGER_HTML = """
<html><body>
  <div class="charger-location">
    <span class="location-name">Garage X</span>
    <span class="provider">ProviderA</span>
    <span class="charger-type">TypeB</span>
    <span class="charger-count">4</span>
  </div>
</body></html>
"""


class StaticDocumentFetcher(DocumentFetcher):
    def __init__(self, documents: dict[str, str | Exception]) -> None:
        self.documents = documents
        self.calls: list[str] = []

    async def fetch(self, source: SourceDescriptor) -> str:
        self.calls.append(source.name)
        document = self.documents[source.name]
        if isinstance(document, Exception):
            raise document
        return document


@pytest.fixture
def parking_html() -> str:
    return PARKING_HTML


@pytest.fixture
def charger_html() -> str:
    return CHARGER_HTML


@pytest.fixture
def static_fetcher_factory() -> Callable[[dict[str, str | Exception]], StaticDocumentFetcher]:
    return StaticDocumentFetcher


@pytest.fixture
def make_facility() -> Callable[..., ParkingFacility]:
    def _make(
        name: str = "Harbour Garage",
        latitude: float = 22.3,
        longitude: float = 114.17,
        capacity: int = 100,
        **overrides,
    ) -> ParkingFacility:
        return ParkingFacility(
            name=name,
            address="1 Harbour Road",
            latitude=latitude,
            longitude=longitude,
            capacity=capacity,
            street_parking=overrides.pop("street_parking", StreetParking()),
            last_updated=datetime(2026, 1, 1, tzinfo=timezone.utc),
            **overrides,
        )

    return _make
