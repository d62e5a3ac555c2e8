from devkit.config import load_settings


def test_load_settings_reads_env(monkeypatch) -> None:
    monkeypatch.setenv("REDIS_URL", "redis://example:6379/0")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = load_settings("carpark-pipeline")

    assert settings.SERVICE_NAME == "carpark-pipeline"
    assert settings.REDIS_URL == "redis://example:6379/0"
    assert settings.LOG_LEVEL == "DEBUG"


def test_load_settings_defaults_without_redis(monkeypatch) -> None:
    monkeypatch.delenv("REDIS_URL", raising=False)
    settings = load_settings("worker")

    assert settings.REDIS_URL is None
