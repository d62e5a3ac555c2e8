from __future__ import annotations

import os

import uvicorn
from devkit.observability import configure_logging

from carpark_pipeline.jobs.ingest import build_store
from carpark_pipeline.monitoring.app import create_monitoring_app
from carpark_pipeline.settings import load_pipeline_settings


def main() -> None:
    settings = load_pipeline_settings()
    configure_logging(settings.LOG_LEVEL)
    host = os.getenv("PIPELINE_MONITORING_HOST", "0.0.0.0")
    port = int(os.getenv("PIPELINE_MONITORING_PORT", "8001"))
    app = create_monitoring_app(store=build_store(settings), max_age=settings.snapshot_max_age)
    uvicorn.run(app, host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
