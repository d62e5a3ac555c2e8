from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from devkit.timezone import configure_hkt_timezone


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    SERVICE_NAME: str = "service"
    REDIS_URL: str | None = None
    LOG_LEVEL: str = "INFO"


def load_settings(service_name: str) -> ServiceSettings:
    configure_hkt_timezone()
    return ServiceSettings(SERVICE_NAME=service_name)
