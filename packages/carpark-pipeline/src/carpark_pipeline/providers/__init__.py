"""Source adapters for the parking and charger listings."""

from carpark_pipeline.providers.chargers import ChargerListingParser, build_charger_index
from carpark_pipeline.providers.fetcher import (
    DocumentFetcher,
    FileDocumentFetcher,
    HttpDocumentFetcher,
    SourceDescriptor,
    build_fetcher,
)
from carpark_pipeline.providers.parking import ParkingListingParser
from carpark_pipeline.providers.parser import StructuralParser

__all__ = [
    "ChargerListingParser",
    "DocumentFetcher",
    "FileDocumentFetcher",
    "HttpDocumentFetcher",
    "ParkingListingParser",
    "SourceDescriptor",
    "StructuralParser",
    "build_charger_index",
    "build_fetcher",
]
