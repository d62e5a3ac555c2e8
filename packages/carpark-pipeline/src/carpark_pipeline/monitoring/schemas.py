from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SnapshotStatus(BaseModel):
    status: str
    record_count: int = 0
    captured_at: datetime | None = None
    age_seconds: float | None = None
    fresh: bool = False
