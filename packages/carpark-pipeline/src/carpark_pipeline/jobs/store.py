from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from redis.exceptions import RedisError

from carpark_pipeline.core.exceptions import SnapshotStoreError
from carpark_pipeline.core.models import ChargingInfo, ParkingFacility, Snapshot, StreetParking
from carpark_pipeline.core.pipeline import SnapshotStore

SNAPSHOT_SCHEMA_VERSION = 1


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_facility(record: ParkingFacility) -> dict[str, Any]:
    payload = asdict(record)
    payload["facilities"] = list(record.facilities)
    payload["last_updated"] = record.last_updated.isoformat() if record.last_updated else None
    return payload


def _deserialize_facility(payload: dict[str, Any]) -> ParkingFacility:
    last_updated = payload.get("last_updated")
    return ParkingFacility(
        name=str(payload["name"]),
        address=str(payload["address"]),
        latitude=float(payload["latitude"]),
        longitude=float(payload["longitude"]),
        capacity=int(payload["capacity"]),
        is_street_parking=bool(payload["is_street_parking"]),
        street_parking=StreetParking(**payload["street_parking"]),
        charging=ChargingInfo(**payload["charging"]),
        opening_hours=str(payload["opening_hours"]),
        contact_number=str(payload["contact_number"]),
        facilities=tuple(payload["facilities"]),
        display_info=str(payload["display_info"]),
        last_updated=datetime.fromisoformat(last_updated) if last_updated else None,
    )


def serialize_snapshot(snapshot: Snapshot) -> dict[str, Any]:
    return {
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "captured_at": snapshot.captured_at.isoformat(),
        "count": snapshot.count,
        "records": [_serialize_facility(record) for record in snapshot.records],
    }


def deserialize_snapshot(payload: dict[str, Any]) -> Snapshot:
    version = payload.get("schema_version")
    if version != SNAPSHOT_SCHEMA_VERSION:
        raise SnapshotStoreError(f"unsupported snapshot schema_version: {version!r}")
    try:
        records = tuple(_deserialize_facility(item) for item in payload["records"])
        return Snapshot(
            records=records,
            captured_at=datetime.fromisoformat(str(payload["captured_at"])),
            count=int(payload["count"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotStoreError(f"malformed snapshot payload: {exc}") from exc


def new_snapshot(records: list[ParkingFacility], captured_at: datetime) -> Snapshot:
    if not records:
        raise SnapshotStoreError("refusing to create an empty snapshot")
    return Snapshot(records=tuple(records), captured_at=captured_at, count=len(records))


class InMemorySnapshotStore(SnapshotStore):
    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._current: Snapshot | None = None

    async def read(self) -> Snapshot | None:
        return self._current

    async def write(self, records: list[ParkingFacility]) -> Snapshot:
        snapshot = new_snapshot(records, self._clock())
        self._current = snapshot
        return snapshot


class JsonFileSnapshotStore(SnapshotStore):
    def __init__(self, file_path: str, clock: Callable[[], datetime] = _utc_now) -> None:
        self._file = Path(file_path)
        self._clock = clock

    async def read(self) -> Snapshot | None:
        if not self._file.exists():
            return None
        try:
            payload = json.loads(self._file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise SnapshotStoreError(f"cannot read snapshot file {self._file}: {exc}") from exc
        return deserialize_snapshot(payload)

    async def write(self, records: list[ParkingFacility]) -> Snapshot:
        snapshot = new_snapshot(records, self._clock())
        tmp_file = self._file.with_name(f"{self._file.name}.tmp")
        try:
            self._file.parent.mkdir(parents=True, exist_ok=True)
            tmp_file.write_text(json.dumps(serialize_snapshot(snapshot), ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_file, self._file)
        except OSError as exc:
            raise SnapshotStoreError(f"cannot write snapshot file {self._file}: {exc}") from exc
        return snapshot


class RedisLikeSnapshotClient(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> bool: ...


class RedisSnapshotStore(SnapshotStore):
    def __init__(
        self,
        client: RedisLikeSnapshotClient,
        key: str = "carpark:snapshot:current",
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._client = client
        self._key = key
        self._clock = clock
        self._write_lock = asyncio.Lock()

    async def read(self) -> Snapshot | None:
        try:
            raw = await self._client.get(self._key)
        except (RedisError, OSError) as exc:
            raise SnapshotStoreError(f"cannot read snapshot under {self._key}: {exc}") from exc
        if not raw:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SnapshotStoreError(f"malformed snapshot under {self._key}: {exc}") from exc
        return deserialize_snapshot(payload)

    async def write(self, records: list[ParkingFacility]) -> Snapshot:
        snapshot = new_snapshot(records, self._clock())
        payload = json.dumps(serialize_snapshot(snapshot), ensure_ascii=False)
        async with self._write_lock:
            try:
                await self._client.set(self._key, payload)
            except (RedisError, OSError) as exc:
                raise SnapshotStoreError(f"cannot write snapshot under {self._key}: {exc}") from exc
        return snapshot
