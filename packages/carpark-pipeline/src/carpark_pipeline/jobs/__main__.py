from __future__ import annotations

import asyncio
import logging

from devkit.observability import configure_logging

from carpark_pipeline.core.exceptions import PipelineError
from carpark_pipeline.core.pipeline import IngestResult
from carpark_pipeline.jobs.ingest import build_ingestion_service
from carpark_pipeline.monitoring.state import pipeline_metrics
from carpark_pipeline.settings import PipelineSettings, load_pipeline_settings

logger = logging.getLogger("carpark_pipeline.jobs")


async def run_ingest(settings: PipelineSettings) -> IngestResult:
    service = build_ingestion_service(settings, metrics=pipeline_metrics)
    return await service.ingest_with_status()


def main() -> int:
    settings = load_pipeline_settings()
    configure_logging(settings.LOG_LEVEL)
    try:
        result = asyncio.run(run_ingest(settings))
    except PipelineError as exc:
        logger.error("no_snapshot_available", extra={"error": str(exc), "error_type": type(exc).__name__})
        return 1
    logger.info(
        "snapshot_ready",
        extra={
            "status": result.status.value,
            "stale": result.is_stale,
            "record_count": result.snapshot.count,
            "captured_at": result.snapshot.captured_at.isoformat(),
        },
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
