from __future__ import annotations

from datetime import datetime
import os
import time
from zoneinfo import ZoneInfo

HKT_ZONE = ZoneInfo("Asia/Hong_Kong")

_configured = False


def configure_hkt_timezone() -> None:
    global _configured
    if _configured:
        return
    os.environ["TZ"] = "Asia/Hong_Kong"
    if hasattr(time, "tzset"):
        time.tzset()
    _configured = True


def now_hkt() -> datetime:
    return datetime.now(HKT_ZONE)


def now_hkt_iso() -> str:
    return now_hkt().isoformat()
