from __future__ import annotations

from carpark_pipeline.core.metrics import InMemoryPipelineMetricsCollector
from carpark_pipeline.core.prometheus_exporter import PipelinePrometheusExporter

pipeline_metrics = InMemoryPipelineMetricsCollector()
pipeline_exporter = PipelinePrometheusExporter()
