from __future__ import annotations

from datetime import timedelta
from typing import Literal

from devkit.config import ServiceSettings
from devkit.timezone import configure_hkt_timezone
from pydantic import Field, model_validator

from carpark_pipeline.core.retry import BackoffPolicy


class PipelineSettings(ServiceSettings):
    SERVICE_NAME: str = "carpark-pipeline"

    PIPELINE_PARKING_SOURCE_URL: str = "https://hk01data.github.io/carpark/"
    PIPELINE_CHARGER_SOURCE_URL: str = "https://www.kilowatt.hk/chargers/"

    PIPELINE_HTTP_CONNECT_TIMEOUT_SECONDS: float = Field(default=5.0, ge=0)
    PIPELINE_HTTP_READ_TIMEOUT_SECONDS: float = Field(default=15.0, ge=0)
    PIPELINE_FETCH_RETRIES: int = Field(default=3, ge=0)
    PIPELINE_FETCH_MIN_DELAY_SECONDS: float = Field(default=2.0, ge=0)
    PIPELINE_FETCH_MAX_DELAY_SECONDS: float = Field(default=5.0, ge=0)
    PIPELINE_FETCH_DEADLINE_SECONDS: float | None = Field(default=30.0, gt=0)

    PIPELINE_SNAPSHOT_MAX_AGE_SECONDS: int = Field(default=3600, gt=0)
    PIPELINE_STORE_BACKEND: Literal["memory", "json", "redis"] = "json"
    PIPELINE_SNAPSHOT_FILE: str = "runtime/carpark_snapshot.json"
    PIPELINE_REDIS_SNAPSHOT_KEY: str = "carpark:snapshot:current"
    PIPELINE_QUALITY_REJECT_SAMPLE_SIZE: int = Field(default=5, ge=0)

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> PipelineSettings:
        if self.PIPELINE_FETCH_MAX_DELAY_SECONDS < self.PIPELINE_FETCH_MIN_DELAY_SECONDS:
            raise ValueError("PIPELINE_FETCH_MAX_DELAY_SECONDS must be >= PIPELINE_FETCH_MIN_DELAY_SECONDS")
        if self.PIPELINE_STORE_BACKEND == "redis" and not self.REDIS_URL:
            raise ValueError("REDIS_URL is required when PIPELINE_STORE_BACKEND=redis")
        return self

    @property
    def backoff_policy(self) -> BackoffPolicy:
        return BackoffPolicy(
            retries=self.PIPELINE_FETCH_RETRIES,
            min_delay_seconds=self.PIPELINE_FETCH_MIN_DELAY_SECONDS,
            max_delay_seconds=self.PIPELINE_FETCH_MAX_DELAY_SECONDS,
            deadline_seconds=self.PIPELINE_FETCH_DEADLINE_SECONDS,
        )

    @property
    def snapshot_max_age(self) -> timedelta:
        return timedelta(seconds=self.PIPELINE_SNAPSHOT_MAX_AGE_SECONDS)


def load_pipeline_settings() -> PipelineSettings:
    configure_hkt_timezone()
    return PipelineSettings()
