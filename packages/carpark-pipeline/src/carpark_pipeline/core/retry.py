from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from carpark_pipeline.core.exceptions import FetchError, PermanentFetchError, TransientFetchError

T = TypeVar("T")


@dataclass(frozen=True)
class BackoffPolicy:
    retries: int = 3
    min_delay_seconds: float = 2.0
    max_delay_seconds: float = 5.0
    factor: float = 2.0
    deadline_seconds: float | None = 30.0

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.min_delay_seconds < 0 or self.max_delay_seconds < self.min_delay_seconds:
            raise ValueError("delay bounds must satisfy 0 <= min_delay_seconds <= max_delay_seconds")

    def delay_for(self, attempt: int) -> float:
        delay = self.min_delay_seconds * (self.factor ** (attempt - 1))
        return max(self.min_delay_seconds, min(delay, self.max_delay_seconds))


async def with_bounded_backoff(
    operation: Callable[[], Awaitable[T]],
    policy: BackoffPolicy | None = None,
    source: str = "unknown",
    on_retry: Callable[[int, Exception, float], None] | None = None,
    sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    policy = policy or BackoffPolicy()
    started = clock()
    attempt = 0
    while True:
        try:
            return await operation()
        except PermanentFetchError:
            raise
        except Exception as exc:
            attempt += 1
            last_error = _as_transient(exc, source=source, attempts=attempt)
            if attempt > policy.retries:
                if last_error is exc:
                    raise
                raise last_error from exc
            delay = policy.delay_for(attempt)
            if policy.deadline_seconds is not None and clock() - started + delay > policy.deadline_seconds:
                raise TransientFetchError(
                    f"retry deadline exceeded after {attempt} attempts: {exc}",
                    source=source,
                    attempts=attempt,
                ) from exc
            if on_retry:
                on_retry(attempt, exc, delay)
            await sleep_fn(delay)


def _as_transient(exc: Exception, source: str, attempts: int) -> FetchError:
    if isinstance(exc, TransientFetchError):
        exc.attempts = attempts
        return exc
    return TransientFetchError(str(exc), source=source, attempts=attempts)
