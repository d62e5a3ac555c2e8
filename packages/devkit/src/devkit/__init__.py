"""Common runtime devkit for service infrastructure concerns."""

from devkit.config import ServiceSettings, load_settings
from devkit.observability import ExtraFieldsFormatter, configure_logging, configure_probe_access_log_filter
from devkit.redis import AsyncRedisManager, create_redis_client
from devkit.timezone import HKT_ZONE, configure_hkt_timezone, now_hkt, now_hkt_iso

__all__ = [
    "AsyncRedisManager",
    "ExtraFieldsFormatter",
    "HKT_ZONE",
    "ServiceSettings",
    "configure_hkt_timezone",
    "configure_logging",
    "configure_probe_access_log_filter",
    "create_redis_client",
    "load_settings",
    "now_hkt",
    "now_hkt_iso",
]
