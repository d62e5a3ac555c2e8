from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from carpark_pipeline.jobs.__main__ import main
from carpark_pipeline.jobs.ingest import build_store
from carpark_pipeline.jobs.store import InMemorySnapshotStore, JsonFileSnapshotStore, RedisSnapshotStore
from carpark_pipeline.settings import PipelineSettings


def test_settings_defaults_match_pipeline_policy(monkeypatch) -> None:
    monkeypatch.delenv("PIPELINE_FETCH_RETRIES", raising=False)
    settings = PipelineSettings()

    policy = settings.backoff_policy
    assert policy.retries == 3
    assert policy.min_delay_seconds == 2.0
    assert policy.max_delay_seconds == 5.0
    assert settings.snapshot_max_age.total_seconds() == 3600


def test_settings_require_redis_url_for_redis_backend(monkeypatch) -> None:
    monkeypatch.setenv("PIPELINE_STORE_BACKEND", "redis")
    monkeypatch.delenv("REDIS_URL", raising=False)

    with pytest.raises(ValidationError):
        PipelineSettings()


def test_build_store_selects_backend(monkeypatch, tmp_path) -> None:
    assert isinstance(build_store(PipelineSettings(PIPELINE_STORE_BACKEND="memory")), InMemorySnapshotStore)
    json_settings = PipelineSettings(PIPELINE_STORE_BACKEND="json", PIPELINE_SNAPSHOT_FILE=str(tmp_path / "s.json"))
    assert isinstance(build_store(json_settings), JsonFileSnapshotStore)
    redis_settings = PipelineSettings(PIPELINE_STORE_BACKEND="redis", REDIS_URL="redis://example:6379/0")
    assert isinstance(build_store(redis_settings), RedisSnapshotStore)


def test_main_ingests_local_documents(monkeypatch, tmp_path, parking_html, charger_html) -> None:
    parking_path = tmp_path / "parking.html"
    charger_path = tmp_path / "chargers.html"
    snapshot_path = tmp_path / "snapshot.json"
    parking_path.write_text(parking_html, encoding="utf-8")
    charger_path.write_text(charger_html, encoding="utf-8")
    monkeypatch.setenv("PIPELINE_PARKING_SOURCE_URL", f"file://{parking_path}")
    monkeypatch.setenv("PIPELINE_CHARGER_SOURCE_URL", str(charger_path))
    monkeypatch.setenv("PIPELINE_STORE_BACKEND", "json")
    monkeypatch.setenv("PIPELINE_SNAPSHOT_FILE", str(snapshot_path))

    assert main() == 0

    payload = json.loads(snapshot_path.read_text(encoding="utf-8"))
    assert payload["count"] == 2
    assert [record["name"] for record in payload["records"]] == ["Garage X", "Street Parking Zone - Zone Y"]


def test_main_returns_error_code_when_no_snapshot_is_available(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("PIPELINE_PARKING_SOURCE_URL", str(tmp_path / "missing.html"))
    monkeypatch.setenv("PIPELINE_CHARGER_SOURCE_URL", str(tmp_path / "missing-chargers.html"))
    monkeypatch.setenv("PIPELINE_STORE_BACKEND", "memory")

    assert main() == 1
