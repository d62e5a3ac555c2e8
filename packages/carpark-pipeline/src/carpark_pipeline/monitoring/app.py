from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from devkit.observability import configure_probe_access_log_filter
from fastapi import FastAPI, Response

from carpark_pipeline.core.metrics import InMemoryPipelineMetricsCollector
from carpark_pipeline.core.pipeline import DEFAULT_FRESHNESS, SnapshotStore
from carpark_pipeline.monitoring.schemas import SnapshotStatus
from carpark_pipeline.monitoring.state import pipeline_exporter, pipeline_metrics


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def create_monitoring_app(
    store: SnapshotStore | None = None,
    metrics: InMemoryPipelineMetricsCollector = pipeline_metrics,
    max_age: timedelta = DEFAULT_FRESHNESS,
    clock: Callable[[], datetime] = _utc_now,
) -> FastAPI:
    app = FastAPI(title="Carpark Pipeline Monitoring", version="0.1.0")
    configure_probe_access_log_filter()

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/readyz", response_model=SnapshotStatus)
    async def readyz(response: Response) -> SnapshotStatus:
        snapshot = await store.read() if store is not None else None
        if snapshot is None:
            response.status_code = 503
            return SnapshotStatus(status="no_snapshot")
        now = clock()
        return SnapshotStatus(
            status="ready",
            record_count=snapshot.count,
            captured_at=snapshot.captured_at,
            age_seconds=snapshot.age(now).total_seconds(),
            fresh=snapshot.is_fresh(now, max_age),
        )

    @app.get("/metrics")
    async def metrics_endpoint() -> Response:
        body = pipeline_exporter.render(metrics)
        return Response(content=body, media_type="text/plain; version=0.0.4")

    return app
