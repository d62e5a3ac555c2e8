import pytest

from carpark_pipeline.core.exceptions import PermanentFetchError, TransientFetchError
from carpark_pipeline.core.retry import BackoffPolicy, with_bounded_backoff


class FakeTimer:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


def test_backoff_policy_delays_are_bounded() -> None:
    policy = BackoffPolicy()

    assert [policy.delay_for(attempt) for attempt in (1, 2, 3, 4)] == [2.0, 4.0, 5.0, 5.0]


def test_backoff_policy_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        BackoffPolicy(min_delay_seconds=5.0, max_delay_seconds=2.0)


@pytest.mark.asyncio
async def test_backoff_retries_transient_failures_until_success() -> None:
    timer = FakeTimer()
    state = {"count": 0}

    async def flaky_operation() -> str:
        state["count"] += 1
        if state["count"] < 3:
            raise TransientFetchError("temporary failure", source="parking_listing")
        return "ok"

    result = await with_bounded_backoff(flaky_operation, sleep_fn=timer.sleep, clock=timer.clock)

    assert result == "ok"
    assert state["count"] == 3
    assert timer.sleeps == [2.0, 4.0]


@pytest.mark.asyncio
async def test_backoff_makes_four_attempts_before_surfacing_transient_error() -> None:
    timer = FakeTimer()
    state = {"count": 0}
    retries: list[int] = []

    async def failing_operation() -> str:
        state["count"] += 1
        raise RuntimeError("connection reset")

    with pytest.raises(TransientFetchError) as exc_info:
        await with_bounded_backoff(
            failing_operation,
            source="charger_listing",
            on_retry=lambda attempt, _exc, _delay: retries.append(attempt),
            sleep_fn=timer.sleep,
            clock=timer.clock,
        )

    assert state["count"] == 4
    assert retries == [1, 2, 3]
    assert timer.sleeps == [2.0, 4.0, 5.0]
    assert exc_info.value.source == "charger_listing"
    assert exc_info.value.attempts == 4
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_backoff_bails_immediately_on_permanent_error() -> None:
    timer = FakeTimer()
    state = {"count": 0}

    async def missing_operation() -> str:
        state["count"] += 1
        raise PermanentFetchError("not found", source="parking_listing")

    with pytest.raises(PermanentFetchError):
        await with_bounded_backoff(missing_operation, sleep_fn=timer.sleep, clock=timer.clock)

    assert state["count"] == 1
    assert timer.sleeps == []


@pytest.mark.asyncio
async def test_backoff_stops_when_deadline_would_be_exceeded() -> None:
    timer = FakeTimer()
    state = {"count": 0}

    async def failing_operation() -> str:
        state["count"] += 1
        raise TransientFetchError("still down")

    with pytest.raises(TransientFetchError) as exc_info:
        await with_bounded_backoff(
            failing_operation,
            policy=BackoffPolicy(deadline_seconds=5.0),
            sleep_fn=timer.sleep,
            clock=timer.clock,
        )

    assert state["count"] == 2
    assert timer.sleeps == [2.0]
    assert "deadline" in str(exc_info.value)
