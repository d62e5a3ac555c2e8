from carpark_pipeline.core.metrics import InMemoryPipelineMetricsCollector
from carpark_pipeline.core.prometheus_exporter import PipelinePrometheusExporter


def test_pipeline_prometheus_exporter_renders_metrics() -> None:
    metrics = InMemoryPipelineMetricsCollector()
    metrics.observe_stage_duration("extract_parking", 12.5)
    metrics.observe_stage_duration("store", 4.1)
    metrics.increment_run("refreshed")
    metrics.add_records("accepted", 8)
    metrics.add_records("rejected", 2)
    metrics.increment_fetch_retry("charger_listing")
    metrics.increment_fetch_failure("parking_listing", "permanent")
    metrics.increment_parse_error("garage")
    metrics.increment_merge_error()
    metrics.set_unmatched_aggregates(3)
    metrics.observe_snapshot(records=8, age_seconds=12.0)

    output = PipelinePrometheusExporter().render(metrics)

    assert 'carpark_stage_duration_ms{stage="extract_parking"} 12.5' in output
    assert 'carpark_ingest_runs_total{status="refreshed"} 1.0' in output
    assert 'carpark_records_total{result="rejected"} 2.0' in output
    assert 'carpark_fetch_retries_total{source="charger_listing"} 1.0' in output
    assert 'carpark_fetch_failures_total{source="parking_listing",kind="permanent"} 1.0' in output
    assert 'carpark_parse_errors_total{kind="garage"} 1.0' in output
    assert "carpark_merge_errors_total 1.0" in output
    assert "carpark_unmatched_charger_aggregates 3.0" in output
    assert "carpark_snapshot_records 8.0" in output
    assert "carpark_snapshot_age_seconds 12.0" in output


def test_metrics_collector_ignores_non_positive_record_counts() -> None:
    metrics = InMemoryPipelineMetricsCollector()
    metrics.add_records("rejected", 0)

    assert "rejected" not in metrics.pipeline_records_total


def test_metrics_collector_keeps_latest_duration_per_stage() -> None:
    metrics = InMemoryPipelineMetricsCollector()
    for duration in (5.0, 7.0, 3.0):
        metrics.observe_stage_duration("merge", duration)
    metrics.observe_stage_duration("store", 1.0)

    assert len(metrics.stage_durations) == 2
    assert metrics.stage_durations["merge"].duration_ms == 3.0
    assert 'carpark_stage_duration_ms{stage="merge"} 3.0' in PipelinePrometheusExporter().render(metrics)
