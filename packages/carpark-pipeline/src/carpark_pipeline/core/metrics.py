from __future__ import annotations

from dataclasses import dataclass
from collections import defaultdict


@dataclass(frozen=True)
class StageDuration:
    stage: str
    duration_ms: float


class InMemoryPipelineMetricsCollector:
    def __init__(self) -> None:
        self.stage_durations: dict[str, StageDuration] = {}
        self.pipeline_run_total: dict[str, int] = defaultdict(int)
        self.pipeline_records_total: dict[str, int] = defaultdict(int)
        self.fetch_retry_total: dict[str, int] = defaultdict(int)
        self.fetch_failure_total: dict[tuple[str, str], int] = defaultdict(int)
        self.parse_error_total: dict[str, int] = defaultdict(int)
        self.merge_error_count = 0
        self.unmatched_aggregate_count = 0
        self.snapshot_records = 0
        self.snapshot_age_seconds: float | None = None

    def observe_stage_duration(self, stage: str, duration_ms: float) -> None:
        self.stage_durations[stage] = StageDuration(stage=stage, duration_ms=duration_ms)

    def increment_run(self, status: str) -> None:
        self.pipeline_run_total[status] += 1

    def add_records(self, result: str, count: int) -> None:
        if count <= 0:
            return
        self.pipeline_records_total[result] += count

    def increment_fetch_retry(self, source: str) -> None:
        self.fetch_retry_total[source] += 1

    def increment_fetch_failure(self, source: str, kind: str) -> None:
        self.fetch_failure_total[(source, kind)] += 1

    def increment_parse_error(self, kind: str) -> None:
        self.parse_error_total[kind] += 1

    def increment_merge_error(self) -> None:
        self.merge_error_count += 1

    def set_unmatched_aggregates(self, count: int) -> None:
        self.unmatched_aggregate_count = count

    def observe_snapshot(self, records: int, age_seconds: float) -> None:
        self.snapshot_records = records
        self.snapshot_age_seconds = age_seconds
