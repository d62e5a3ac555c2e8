from __future__ import annotations

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from carpark_pipeline.core.metrics import InMemoryPipelineMetricsCollector


class PipelinePrometheusExporter:
    def __init__(self) -> None:
        self._registry = CollectorRegistry()
        self._stage_duration = Gauge(
            "carpark_stage_duration_ms",
            "Ingestion stage duration in milliseconds",
            labelnames=("stage",),
            registry=self._registry,
        )
        self._run_total = Gauge(
            "carpark_ingest_runs_total",
            "Ingestion runs grouped by outcome",
            labelnames=("status",),
            registry=self._registry,
        )
        self._records_total = Gauge(
            "carpark_records_total",
            "Facility record counts grouped by result",
            labelnames=("result",),
            registry=self._registry,
        )
        self._fetch_retries = Gauge(
            "carpark_fetch_retries_total",
            "Source fetch retries grouped by source",
            labelnames=("source",),
            registry=self._registry,
        )
        self._fetch_failures = Gauge(
            "carpark_fetch_failures_total",
            "Exhausted or permanent source fetch failures",
            labelnames=("source", "kind"),
            registry=self._registry,
        )
        self._parse_errors = Gauge(
            "carpark_parse_errors_total",
            "Records skipped during extraction grouped by record kind",
            labelnames=("kind",),
            registry=self._registry,
        )
        self._merge_errors = Gauge(
            "carpark_merge_errors_total",
            "Facilities whose charging merge failed",
            registry=self._registry,
        )
        self._unmatched_aggregates = Gauge(
            "carpark_unmatched_charger_aggregates",
            "Charger locations that matched no facility in the latest run",
            registry=self._registry,
        )
        self._snapshot_records = Gauge(
            "carpark_snapshot_records",
            "Facility count of the snapshot served last",
            registry=self._registry,
        )
        self._snapshot_age = Gauge(
            "carpark_snapshot_age_seconds",
            "Age of the snapshot served last",
            registry=self._registry,
        )

    def render(self, metrics: InMemoryPipelineMetricsCollector) -> str:
        for item in metrics.stage_durations.values():
            self._stage_duration.labels(stage=item.stage).set(item.duration_ms)
        for status, count in metrics.pipeline_run_total.items():
            self._run_total.labels(status=status).set(count)
        for result, count in metrics.pipeline_records_total.items():
            self._records_total.labels(result=result).set(count)
        for source, count in metrics.fetch_retry_total.items():
            self._fetch_retries.labels(source=source).set(count)
        for (source, kind), count in metrics.fetch_failure_total.items():
            self._fetch_failures.labels(source=source, kind=kind).set(count)
        for kind, count in metrics.parse_error_total.items():
            self._parse_errors.labels(kind=kind).set(count)
        self._merge_errors.set(metrics.merge_error_count)
        self._unmatched_aggregates.set(metrics.unmatched_aggregate_count)
        self._snapshot_records.set(metrics.snapshot_records)
        if metrics.snapshot_age_seconds is not None:
            self._snapshot_age.set(metrics.snapshot_age_seconds)
        return generate_latest(self._registry).decode("utf-8")
