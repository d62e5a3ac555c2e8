from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class AsyncRedisManager:
    """Lazily connected redis client that reconnects between retried commands."""

    def __init__(
        self,
        url: str,
        *,
        max_retries: int = 3,
        base_delay_seconds: float = 0.2,
        client_factory: Callable[[str], Any] | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._url = url
        self._max_retries = max_retries
        self._base_delay_seconds = base_delay_seconds
        self._client_factory = client_factory
        self._sleep_fn = sleep_fn
        self._client: Any | None = None
        self._lock = asyncio.Lock()

    async def get_client(self) -> Any:
        async with self._lock:
            if self._client is None:
                self._client = self._new_client()
                await self._client.ping()
            return self._client

    async def reconnect(self) -> Any:
        async with self._lock:
            if self._client is not None:
                try:
                    await self._client.close()
                except Exception as exc:
                    logger.debug("redis_close_failed", extra={"error": str(exc)})
            self._client = self._new_client()
            await self._client.ping()
            return self._client

    async def close(self) -> None:
        async with self._lock:
            if self._client is not None:
                try:
                    await self._client.close()
                finally:
                    self._client = None

    async def execute(self, operation: str, *args, **kwargs):
        attempt = 0
        while True:
            try:
                client = await self.get_client()
                return await getattr(client, operation)(*args, **kwargs)
            except Exception as exc:
                attempt += 1
                if attempt >= self._max_retries:
                    raise
                logger.warning(
                    "redis_command_retry",
                    extra={"operation": operation, "attempt": attempt, "error": str(exc)},
                )
                await self._sleep_fn(self._base_delay_seconds * (2 ** (attempt - 1)))
                try:
                    await self.reconnect()
                except Exception as reconnect_exc:
                    logger.warning("redis_reconnect_failed", extra={"error": str(reconnect_exc)})

    async def get(self, key: str) -> str | None:
        return await self.execute("get", key)

    async def set(self, key: str, value: str) -> bool:
        return await self.execute("set", key, value)

    def _new_client(self) -> Any:
        if self._client_factory is not None:
            return self._client_factory(self._url)
        import redis.asyncio as redis

        return redis.from_url(
            self._url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )


def create_redis_client(url: str | None, **kwargs: Any) -> AsyncRedisManager | None:
    if not url:
        return None
    return AsyncRedisManager(url, **kwargs)
