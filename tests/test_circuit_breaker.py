"""Circuit breaker state machine tests.

Core transitions:
1. CLOSED -> OPEN (consecutive failures reach the threshold)
2. OPEN -> HALF_OPEN (reset timeout elapsed, the triggering call is the trial call)
3. HALF_OPEN -> CLOSED (trial call succeeded)
4. HALF_OPEN -> OPEN (trial call failed)
"""

from __future__ import annotations

import asyncio

import pytest

from faultguard.exception import CircuitOpenError, ErrorKind, ValidationException
from faultguard.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitStatus,
    get_circuit_breaker,
    reset_circuit_breakers,
    with_circuit_breaker,
)
from faultguard.resilience.config import CircuitBreakerConfig


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return _FakeClock()


@pytest.fixture
def circuit_breaker(clock):
    """Breaker with threshold 3 and a 100ms reset timeout."""
    config = CircuitBreakerConfig(failure_threshold=3, reset_timeout_ms=100)
    return CircuitBreaker("test", config, clock=clock)


async def _fail():
    raise ConnectionError("connection refused")


async def _ok():
    return "ok"


async def _trip(cb: CircuitBreaker, times: int = 3) -> None:
    for _ in range(times):
        with pytest.raises(ConnectionError):
            await cb.execute(_fail)


@pytest.mark.asyncio
async def test_circuit_breaker_should_start_in_closed_state(circuit_breaker) -> None:
    assert circuit_breaker.status == CircuitStatus.CLOSED
    assert circuit_breaker.failure_count == 0


@pytest.mark.asyncio
async def test_closed_passes_calls_through(circuit_breaker) -> None:
    assert await circuit_breaker.execute(_ok) == "ok"


@pytest.mark.asyncio
async def test_opens_after_threshold_failures(circuit_breaker, clock) -> None:
    await _trip(circuit_breaker)

    snapshot = circuit_breaker.snapshot()
    assert snapshot.status == CircuitStatus.OPEN
    assert snapshot.failure_count == 3
    assert snapshot.last_failure_time == clock.now


@pytest.mark.asyncio
async def test_open_rejects_without_invoking(circuit_breaker) -> None:
    await _trip(circuit_breaker)
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        return "ok"

    with pytest.raises(CircuitOpenError) as exc_info:
        await circuit_breaker.execute(operation)

    assert calls["count"] == 0
    assert exc_info.value.name == "test"
    assert exc_info.value.retry_after_ms == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_success_resets_failure_count(circuit_breaker) -> None:
    await _trip(circuit_breaker, times=2)
    assert circuit_breaker.failure_count == 2

    await circuit_breaker.execute(_ok)

    assert circuit_breaker.failure_count == 0
    assert circuit_breaker.status == CircuitStatus.CLOSED


@pytest.mark.asyncio
async def test_stays_open_before_reset_timeout(circuit_breaker, clock) -> None:
    await _trip(circuit_breaker)

    clock.advance(0.05)
    with pytest.raises(CircuitOpenError):
        await circuit_breaker.execute(_ok)

    assert circuit_breaker.status == CircuitStatus.OPEN


@pytest.mark.asyncio
async def test_trial_call_success_closes(circuit_breaker, clock) -> None:
    await _trip(circuit_breaker)
    clock.advance(0.15)

    assert await circuit_breaker.execute(_ok) == "ok"

    assert circuit_breaker.status == CircuitStatus.CLOSED
    assert circuit_breaker.failure_count == 0


@pytest.mark.asyncio
async def test_trial_call_failure_reopens_and_resets_timer(circuit_breaker, clock) -> None:
    await _trip(circuit_breaker)
    first_failure = circuit_breaker.snapshot().last_failure_time
    clock.advance(0.15)

    with pytest.raises(ConnectionError):
        await circuit_breaker.execute(_fail)

    snapshot = circuit_breaker.snapshot()
    assert snapshot.status == CircuitStatus.OPEN
    assert snapshot.last_failure_time == clock.now
    assert snapshot.last_failure_time > first_failure

    with pytest.raises(CircuitOpenError):
        await circuit_breaker.execute(_ok)


@pytest.mark.asyncio
async def test_half_open_allows_exactly_one_trial_call(circuit_breaker, clock) -> None:
    await _trip(circuit_breaker)
    clock.advance(0.15)

    release = asyncio.Event()
    calls = {"count": 0}

    async def slow_trial():
        calls["count"] += 1
        await release.wait()
        return "trial"

    trial = asyncio.create_task(circuit_breaker.execute(slow_trial))
    await asyncio.sleep(0)
    assert circuit_breaker.status == CircuitStatus.HALF_OPEN

    with pytest.raises(CircuitOpenError):
        await circuit_breaker.execute(slow_trial)

    release.set()
    assert await trial == "trial"
    assert calls["count"] == 1
    assert circuit_breaker.status == CircuitStatus.CLOSED


@pytest.mark.asyncio
async def test_cancelled_trial_call_releases_slot(circuit_breaker, clock) -> None:
    await _trip(circuit_breaker)
    clock.advance(0.15)

    async def hang():
        await asyncio.sleep(10)

    trial = asyncio.create_task(circuit_breaker.execute(hang))
    await asyncio.sleep(0)
    trial.cancel()
    with pytest.raises(asyncio.CancelledError):
        await trial

    assert circuit_breaker.status == CircuitStatus.HALF_OPEN
    assert await circuit_breaker.execute(_ok) == "ok"
    assert circuit_breaker.status == CircuitStatus.CLOSED


@pytest.mark.asyncio
async def test_concurrent_failures_open_once(clock) -> None:
    """Callers racing at threshold - 1 leave a consistent OPEN state."""
    cb = CircuitBreaker(
        "race",
        CircuitBreakerConfig(failure_threshold=2, reset_timeout_ms=1000),
        clock=clock,
    )
    gate = asyncio.Event()

    async def gated_failure():
        await gate.wait()
        raise ConnectionError("down")

    tasks = [asyncio.create_task(cb.execute(gated_failure)) for _ in range(5)]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert all(isinstance(r, ConnectionError) for r in results)
    assert cb.status == CircuitStatus.OPEN
    # Failures landing after the circuit opened are not counted.
    assert cb.failure_count == 2


@pytest.mark.asyncio
async def test_ignored_kinds_do_not_count(clock) -> None:
    cb = CircuitBreaker(
        "validation",
        CircuitBreakerConfig(
            failure_threshold=1,
            reset_timeout_ms=1000,
            ignored_kinds=frozenset({ErrorKind.VALIDATION}),
        ),
        clock=clock,
    )

    async def invalid():
        raise ValidationException("bad payload")

    for _ in range(3):
        with pytest.raises(ValidationException):
            await cb.execute(invalid)

    assert cb.status == CircuitStatus.CLOSED
    assert cb.failure_count == 0


@pytest.mark.asyncio
async def test_downstream_circuit_open_not_counted(circuit_breaker) -> None:
    async def downstream_open():
        raise CircuitOpenError("inner")

    for _ in range(5):
        with pytest.raises(CircuitOpenError):
            await circuit_breaker.execute(downstream_open)

    assert circuit_breaker.status == CircuitStatus.CLOSED
    assert circuit_breaker.failure_count == 0


def test_registry_shares_breaker_per_dependency() -> None:
    registry = CircuitBreakerRegistry(CircuitBreakerConfig())

    assert registry.get("billing") is registry.get("billing")
    assert registry.get("billing") is not registry.get("search")
    assert set(registry.snapshots()) == {"billing", "search"}


@pytest.mark.asyncio
async def test_with_circuit_breaker_decorator_should_raise_error_when_open(clock) -> None:
    registry = CircuitBreakerRegistry(
        CircuitBreakerConfig(failure_threshold=3, reset_timeout_ms=100), clock=clock
    )

    @with_circuit_breaker("test_decorator", registry)
    async def failing_func():
        raise RuntimeError("boom")

    for _ in range(3):
        with pytest.raises(RuntimeError):
            await failing_func()

    with pytest.raises(CircuitOpenError):
        await failing_func()

    assert registry.get("test_decorator").status == CircuitStatus.OPEN


@pytest.mark.asyncio
async def test_default_registry() -> None:
    reset_circuit_breakers()
    try:
        cb = get_circuit_breaker("shared")
        assert get_circuit_breaker("shared") is cb

        @with_circuit_breaker("shared")
        async def ok():
            return 1

        assert await ok() == 1
    finally:
        reset_circuit_breakers()


@pytest.mark.asyncio
async def test_real_clock_recovery() -> None:
    cb = CircuitBreaker(
        "real", CircuitBreakerConfig(failure_threshold=1, reset_timeout_ms=50)
    )
    with pytest.raises(ConnectionError):
        await cb.execute(_fail)
    assert cb.status == CircuitStatus.OPEN

    await asyncio.sleep(0.08)

    assert await cb.execute(_ok) == "ok"
    assert cb.status == CircuitStatus.CLOSED
