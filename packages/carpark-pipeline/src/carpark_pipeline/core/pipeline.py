from __future__ import annotations

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from time import perf_counter
from typing import Awaitable, Generic, TypeVar

from carpark_pipeline.core.exceptions import PipelineError, SnapshotStoreError
from carpark_pipeline.core.merge import ChargingMerger
from carpark_pipeline.core.metrics import InMemoryPipelineMetricsCollector
from carpark_pipeline.core.models import ChargerAggregate, ParkingFacility, Snapshot
from carpark_pipeline.core.quality import FacilityQualityGate

T = TypeVar("T")
R = TypeVar("R")
logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS = timedelta(hours=1)


class Extractor(ABC, Generic[T]):
    @abstractmethod
    async def extract(self) -> T:
        raise NotImplementedError


class SnapshotStore(ABC):
    @abstractmethod
    async def read(self) -> Snapshot | None:
        raise NotImplementedError

    @abstractmethod
    async def write(self, records: list[ParkingFacility]) -> Snapshot:
        raise NotImplementedError


class IngestStatus(str, enum.Enum):
    CACHE_HIT = "cache_hit"
    REFRESHED = "refreshed"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class IngestResult:
    snapshot: Snapshot
    status: IngestStatus
    error: Exception | None = None

    @property
    def is_stale(self) -> bool:
        return self.status is IngestStatus.FALLBACK


class IngestionPipeline:
    def __init__(
        self,
        parking_extractor: Extractor[list[ParkingFacility]],
        charger_extractor: Extractor[dict[str, ChargerAggregate]],
        store: SnapshotStore,
        merger: ChargingMerger | None = None,
        quality_gate: FacilityQualityGate | None = None,
        metrics: InMemoryPipelineMetricsCollector | None = None,
    ) -> None:
        self._parking_extractor = parking_extractor
        self._charger_extractor = charger_extractor
        self._store = store
        self._merger = merger or ChargingMerger()
        self._quality_gate = quality_gate or FacilityQualityGate()
        self._metrics = metrics

    async def run(self) -> Snapshot:
        logger.info("ingest_run_started", extra={"component": "carpark_pipeline"})
        total_started = perf_counter()
        facilities, aggregates = await self._extract_both()
        if self._metrics:
            self._metrics.add_records("parsed", len(facilities))

        merged = self._time_sync("merge", lambda: self._merger.merge(facilities, aggregates))
        if self._metrics:
            self._metrics.set_unmatched_aggregates(len(merged.unmatched))
            for _ in range(merged.error_count):
                self._metrics.increment_merge_error()

        quality = self._time_sync("validate", lambda: self._quality_gate.filter_and_sort(merged.facilities))
        if self._metrics:
            self._metrics.add_records("rejected", quality.rejected_count)
            self._metrics.add_records("accepted", len(quality.accepted))

        snapshot = await self._time_async("store", lambda: self._store.write(quality.accepted))
        self._observe("ingest_total", (perf_counter() - total_started) * 1000.0)
        logger.info(
            "ingest_run_completed",
            extra={
                "component": "carpark_pipeline",
                "saved_count": snapshot.count,
                "rejected_count": quality.rejected_count,
                "unmatched_aggregates": len(merged.unmatched),
            },
        )
        return snapshot

    async def _extract_both(self) -> tuple[list[ParkingFacility], dict[str, ChargerAggregate]]:
        # Both sources must settle before either failure is surfaced.
        parking, chargers = await asyncio.gather(
            self._time_async("extract_parking", self._parking_extractor.extract),
            self._time_async("extract_chargers", self._charger_extractor.extract),
            return_exceptions=True,
        )
        for outcome in (parking, chargers):
            if isinstance(outcome, BaseException):
                raise outcome
        return parking, chargers

    async def _time_async(self, stage: str, action: Callable[[], Awaitable[R]]) -> R:
        started = perf_counter()
        result = await action()
        self._observe(stage, (perf_counter() - started) * 1000.0)
        return result

    def _time_sync(self, stage: str, action: Callable[[], R]) -> R:
        started = perf_counter()
        result = action()
        self._observe(stage, (perf_counter() - started) * 1000.0)
        return result

    def _observe(self, stage: str, duration_ms: float) -> None:
        if self._metrics:
            self._metrics.observe_stage_duration(stage, duration_ms)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IngestionService:
    """Entry point for consumers of the facility snapshot.

    Serves a fresh snapshot from the store when one exists, otherwise runs
    the pipeline once for all concurrent callers. When the run fails, the
    last stored snapshot is served regardless of its age.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        store: SnapshotStore,
        max_age: timedelta = DEFAULT_FRESHNESS,
        clock: Callable[[], datetime] = _utc_now,
        metrics: InMemoryPipelineMetricsCollector | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._store = store
        self._max_age = max_age
        self._clock = clock
        self._metrics = metrics
        self._inflight: asyncio.Task[IngestResult] | None = None

    async def ingest(self) -> Snapshot:
        result = await self.ingest_with_status()
        return result.snapshot

    async def ingest_with_status(self) -> IngestResult:
        cached = await self._read_quietly()
        if cached is not None and cached.is_fresh(self._clock(), self._max_age):
            return self._finish(IngestResult(snapshot=cached, status=IngestStatus.CACHE_HIT))

        if self._inflight is None:
            task = asyncio.ensure_future(self._refresh())
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
        else:
            logger.debug("ingest_joined_inflight_run", extra={"component": "carpark_pipeline"})
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> IngestResult:
        try:
            snapshot = await self._pipeline.run()
        except PipelineError as exc:
            logger.error(
                "ingest_run_failed",
                extra={"component": "carpark_pipeline", "error": str(exc), "error_type": type(exc).__name__},
            )
            fallback = await self._read_quietly()
            if fallback is None:
                if self._metrics:
                    self._metrics.increment_run("failed")
                raise
            age = fallback.age(self._clock())
            logger.info(
                "serving_fallback_snapshot",
                extra={
                    "component": "carpark_pipeline",
                    "cache_age_seconds": age.total_seconds(),
                    "record_count": fallback.count,
                },
            )
            return self._finish(IngestResult(snapshot=fallback, status=IngestStatus.FALLBACK, error=exc))
        return self._finish(IngestResult(snapshot=snapshot, status=IngestStatus.REFRESHED))

    async def _read_quietly(self) -> Snapshot | None:
        try:
            return await self._store.read()
        except SnapshotStoreError as exc:
            logger.error("snapshot_read_failed", extra={"component": "carpark_pipeline", "error": str(exc)})
            return None

    def _finish(self, result: IngestResult) -> IngestResult:
        if self._metrics:
            self._metrics.increment_run(result.status.value)
            age = result.snapshot.age(self._clock()).total_seconds()
            self._metrics.observe_snapshot(result.snapshot.count, age)
        return result

    def _clear_inflight(self, task: asyncio.Task[IngestResult]) -> None:
        if self._inflight is task:
            self._inflight = None
