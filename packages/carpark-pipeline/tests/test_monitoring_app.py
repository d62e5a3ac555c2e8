from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from carpark_pipeline.core.metrics import InMemoryPipelineMetricsCollector
from carpark_pipeline.jobs.store import InMemorySnapshotStore
from carpark_pipeline.monitoring.app import create_monitoring_app

CAPTURED_AT = datetime(2026, 10, 16, 8, 0, tzinfo=timezone.utc)


def test_healthz_reports_ok() -> None:
    client = TestClient(create_monitoring_app())

    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_readyz_is_unavailable_without_snapshot() -> None:
    client = TestClient(create_monitoring_app(store=InMemorySnapshotStore()))

    response = client.get("/readyz")

    assert response.status_code == 503
    assert response.json()["status"] == "no_snapshot"


def test_readyz_reports_snapshot_age_and_freshness(make_facility) -> None:
    store = InMemorySnapshotStore(clock=lambda: CAPTURED_AT)
    asyncio.run(store.write([make_facility(), make_facility(name="Second Garage")]))
    app = create_monitoring_app(store=store, clock=lambda: CAPTURED_AT + timedelta(minutes=90))

    body = TestClient(app).get("/readyz").json()

    assert body["status"] == "ready"
    assert body["record_count"] == 2
    assert body["age_seconds"] == 5400.0
    assert body["fresh"] is False


def test_metrics_endpoint_exposes_pipeline_metrics() -> None:
    metrics = InMemoryPipelineMetricsCollector()
    metrics.observe_stage_duration("merge", 1.5)
    metrics.increment_run("fallback")
    client = TestClient(create_monitoring_app(metrics=metrics))

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "carpark_stage_duration_ms" in response.text
    assert 'carpark_ingest_runs_total{status="fallback"}' in response.text
