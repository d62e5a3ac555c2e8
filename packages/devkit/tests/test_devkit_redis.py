import pytest

from devkit.redis import AsyncRedisManager, create_redis_client


def test_create_redis_client_none() -> None:
    assert create_redis_client(None) is None
    assert create_redis_client("") is None


def test_create_redis_client_returns_lazy_manager() -> None:
    manager = create_redis_client("redis://example:6379/0", max_retries=2)

    assert isinstance(manager, AsyncRedisManager)


@pytest.mark.asyncio
async def test_async_redis_manager_reconnects_on_failure() -> None:
    class FakeClient:
        def __init__(self, fail_once: bool) -> None:
            self.fail_once = fail_once
            self.closed = False
            self.values: dict[str, str] = {}

        async def ping(self) -> bool:
            return True

        async def get(self, key: str) -> str | None:
            if self.fail_once:
                self.fail_once = False
                raise ConnectionError("connection reset")
            return self.values.get(key)

        async def set(self, key: str, value: str) -> bool:
            self.values[key] = value
            return True

        async def close(self) -> None:
            self.closed = True

    created: list[FakeClient] = []
    delays: list[float] = []

    def factory(_url: str) -> FakeClient:
        client = FakeClient(fail_once=not created)
        client.values["snapshot"] = "payload"
        created.append(client)
        return client

    async def record_sleep(delay: float) -> None:
        delays.append(delay)

    manager = AsyncRedisManager(
        "redis://example:6379/0",
        max_retries=3,
        base_delay_seconds=0.1,
        client_factory=factory,
        sleep_fn=record_sleep,
    )

    assert await manager.get("snapshot") == "payload"
    assert len(created) == 2
    assert created[0].closed is True
    assert delays == [0.1]


@pytest.mark.asyncio
async def test_async_redis_manager_gives_up_after_max_retries() -> None:
    class BrokenClient:
        async def ping(self) -> bool:
            return True

        async def set(self, _key: str, _value: str) -> bool:
            raise ConnectionError("down")

        async def close(self) -> None:
            return None

    async def no_sleep(_: float) -> None:
        return None

    manager = AsyncRedisManager(
        "redis://example:6379/0",
        max_retries=2,
        client_factory=lambda _url: BrokenClient(),
        sleep_fn=no_sleep,
    )

    with pytest.raises(ConnectionError):
        await manager.set("snapshot", "payload")
