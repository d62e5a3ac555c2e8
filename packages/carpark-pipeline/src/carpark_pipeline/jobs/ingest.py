from __future__ import annotations

from devkit.redis import create_redis_client

from carpark_pipeline.core.metrics import InMemoryPipelineMetricsCollector
from carpark_pipeline.core.pipeline import IngestionPipeline, IngestionService, SnapshotStore
from carpark_pipeline.core.quality import FacilityQualityGate
from carpark_pipeline.jobs.extractor import ChargerListingExtractor, ParkingListingExtractor
from carpark_pipeline.jobs.store import InMemorySnapshotStore, JsonFileSnapshotStore, RedisSnapshotStore
from carpark_pipeline.providers.fetcher import HttpDocumentFetcher, SourceDescriptor, build_fetcher
from carpark_pipeline.providers.parser import StructuralParser
from carpark_pipeline.providers.chargers import ChargerListingParser
from carpark_pipeline.providers.parking import ParkingListingParser
from carpark_pipeline.settings import PipelineSettings

PARKING_SOURCE = "parking_listing"
CHARGER_SOURCE = "charger_listing"


def build_store(settings: PipelineSettings) -> SnapshotStore:
    if settings.PIPELINE_STORE_BACKEND == "memory":
        return InMemorySnapshotStore()
    if settings.PIPELINE_STORE_BACKEND == "redis":
        client = create_redis_client(settings.REDIS_URL)
        if client is None:
            raise RuntimeError("REDIS_URL is required for the redis snapshot store")
        return RedisSnapshotStore(client, key=settings.PIPELINE_REDIS_SNAPSHOT_KEY)
    return JsonFileSnapshotStore(file_path=settings.PIPELINE_SNAPSHOT_FILE)


def build_ingestion_service(
    settings: PipelineSettings,
    metrics: InMemoryPipelineMetricsCollector | None = None,
    store: SnapshotStore | None = None,
) -> IngestionService:
    store = store or build_store(settings)
    http_fetcher = HttpDocumentFetcher(
        policy=settings.backoff_policy,
        connect_timeout_seconds=settings.PIPELINE_HTTP_CONNECT_TIMEOUT_SECONDS,
        read_timeout_seconds=settings.PIPELINE_HTTP_READ_TIMEOUT_SECONDS,
        metrics=metrics,
    )
    parser = StructuralParser(metrics=metrics)
    parking_source = SourceDescriptor(name=PARKING_SOURCE, location=settings.PIPELINE_PARKING_SOURCE_URL)
    charger_source = SourceDescriptor(name=CHARGER_SOURCE, location=settings.PIPELINE_CHARGER_SOURCE_URL)
    pipeline = IngestionPipeline(
        parking_extractor=ParkingListingExtractor(
            source=parking_source,
            fetcher=build_fetcher(parking_source.location, http_fetcher),
            parser=ParkingListingParser(parser=parser),
        ),
        charger_extractor=ChargerListingExtractor(
            source=charger_source,
            fetcher=build_fetcher(charger_source.location, http_fetcher),
            parser=ChargerListingParser(parser=parser),
        ),
        store=store,
        quality_gate=FacilityQualityGate(reject_sample_size=settings.PIPELINE_QUALITY_REJECT_SAMPLE_SIZE),
        metrics=metrics,
    )
    return IngestionService(
        pipeline=pipeline,
        store=store,
        max_age=settings.snapshot_max_age,
        metrics=metrics,
    )
