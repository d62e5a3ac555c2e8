from __future__ import annotations

from carpark_pipeline.core.models import ChargerAggregate, ParkingFacility
from carpark_pipeline.core.pipeline import Extractor
from carpark_pipeline.providers.chargers import ChargerListingParser
from carpark_pipeline.providers.fetcher import DocumentFetcher, SourceDescriptor
from carpark_pipeline.providers.parking import ParkingListingParser


class ParkingListingExtractor(Extractor[list[ParkingFacility]]):
    def __init__(
        self,
        source: SourceDescriptor,
        fetcher: DocumentFetcher,
        parser: ParkingListingParser | None = None,
    ) -> None:
        self._source = source
        self._fetcher = fetcher
        self._parser = parser or ParkingListingParser()

    async def extract(self) -> list[ParkingFacility]:
        document = await self._fetcher.fetch(self._source)
        return self._parser.parse(document)


class ChargerListingExtractor(Extractor[dict[str, ChargerAggregate]]):
    def __init__(
        self,
        source: SourceDescriptor,
        fetcher: DocumentFetcher,
        parser: ChargerListingParser | None = None,
    ) -> None:
        self._source = source
        self._fetcher = fetcher
        self._parser = parser or ChargerListingParser()

    async def extract(self) -> dict[str, ChargerAggregate]:
        document = await self._fetcher.fetch(self._source)
        return self._parser.parse(document)
