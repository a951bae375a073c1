# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""
Circuit breaker.

Prevents cascading failures by failing fast when a dependency repeatedly fails.
One breaker per dependency id, shared by every caller through the registry.
Each state transition happens under the breaker's lock; the lock is never held
while the wrapped operation runs.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import ParamSpec, TypeVar

from faultguard.exception.circuit_open import CircuitOpenError
from faultguard.exception.classifier import ErrorClassifier
from faultguard.resilience.config import CircuitBreakerConfig, get_circuit_breaker_config

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class CircuitStatus(str, Enum):
    """Circuit breaker status."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True, slots=True)
class CircuitState:
    """Point-in-time view of a breaker."""

    name: str
    status: CircuitStatus
    failure_count: int
    last_failure_time: float | None


class CircuitBreaker:
    """Circuit breaker."""

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        config = config or get_circuit_breaker_config()
        self.name = name
        self.failure_threshold = config.failure_threshold
        self.reset_timeout = config.reset_timeout_ms / 1000.0
        self.ignored_kinds = config.ignored_kinds
        self._clock = clock

        self._status = CircuitStatus.CLOSED
        self._failure_count = 0
        self._last_failure_time: float | None = None
        self._trial_in_flight = False
        self._lock = asyncio.Lock()

    @property
    def status(self) -> CircuitStatus:
        return self._status

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def snapshot(self) -> CircuitState:
        return CircuitState(
            name=self.name,
            status=self._status,
            failure_count=self._failure_count,
            last_failure_time=self._last_failure_time,
        )

    def _cooldown_elapsed(self) -> bool:
        if self._last_failure_time is None:
            return True
        return self._clock() - self._last_failure_time > self.reset_timeout

    def _retry_after_ms(self) -> float | None:
        if self._last_failure_time is None:
            return None
        remaining = self.reset_timeout - (self._clock() - self._last_failure_time)
        return max(remaining * 1000.0, 0.0)

    async def acquire(self) -> bool:
        """
        Decide whether a call may proceed.

        Returns True when the call is the half-open trial call. Raises
        CircuitOpenError when the call is rejected.
        """
        async with self._lock:
            if self._status == CircuitStatus.OPEN and self._cooldown_elapsed():
                self._status = CircuitStatus.HALF_OPEN
                self._trial_in_flight = False
                logger.info(
                    "[CircuitBreaker:%s] OPEN -> HALF_OPEN",
                    self.name,
                    extra={"event": "circuit.half_open", "dependency": self.name},
                )

            if self._status == CircuitStatus.CLOSED:
                return False

            if self._status == CircuitStatus.HALF_OPEN and not self._trial_in_flight:
                self._trial_in_flight = True
                return True

            raise CircuitOpenError(self.name, retry_after_ms=self._retry_after_ms())

    async def record_success(self, trial: bool = False) -> None:
        async with self._lock:
            if self._status == CircuitStatus.HALF_OPEN and trial:
                self._status = CircuitStatus.CLOSED
                self._trial_in_flight = False
                logger.info(
                    "[CircuitBreaker:%s] HALF_OPEN -> CLOSED (recovered)",
                    self.name,
                    extra={"event": "circuit.closed", "dependency": self.name},
                )
            if self._status == CircuitStatus.CLOSED:
                self._failure_count = 0

    async def record_failure(self, trial: bool = False) -> None:
        async with self._lock:
            if self._status == CircuitStatus.OPEN:
                # Late result of a call admitted before the circuit opened.
                return

            if self._status == CircuitStatus.HALF_OPEN:
                if not trial:
                    return
                self._failure_count += 1
                self._status = CircuitStatus.OPEN
                self._trial_in_flight = False
                self._last_failure_time = self._clock()
                logger.warning(
                    "[CircuitBreaker:%s] HALF_OPEN -> OPEN (trial call failed)",
                    self.name,
                    extra={"event": "circuit.reopened", "dependency": self.name},
                )
                return

            self._failure_count += 1
            self._last_failure_time = self._clock()
            if self._failure_count >= self.failure_threshold:
                self._status = CircuitStatus.OPEN
                logger.warning(
                    "[CircuitBreaker:%s] CLOSED -> OPEN (consecutive failures: %s)",
                    self.name,
                    self._failure_count,
                    extra={"event": "circuit.opened", "dependency": self.name},
                )

    async def release_trial(self) -> None:
        """Give up a trial slot without a verdict (e.g. the trial call was cancelled)."""
        async with self._lock:
            self._trial_in_flight = False

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` through the breaker."""
        trial = await self.acquire()
        try:
            result = await operation()
        except CircuitOpenError:
            # A downstream breaker rejected; this dependency was not reached.
            if trial:
                await self.release_trial()
            raise
        except Exception as e:
            if ErrorClassifier.classify(e).kind not in self.ignored_kinds:
                await self.record_failure(trial)
            elif trial:
                # The dependency answered, just not with what the caller wanted.
                await self.record_success(trial)
            raise
        except BaseException:
            if trial:
                await self.release_trial()
            raise
        await self.record_success(trial)
        return result

    def reset(self) -> None:
        self._status = CircuitStatus.CLOSED
        self._failure_count = 0
        self._last_failure_time = None
        self._trial_in_flight = False


class CircuitBreakerRegistry:
    """Breakers keyed by dependency id."""

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._clock = clock
        self._circuit_breakers: dict[str, CircuitBreaker] = {}

    def get(self, name: str) -> CircuitBreaker:
        if name in self._circuit_breakers:
            return self._circuit_breakers[name]
        breaker = CircuitBreaker(name, self._config, clock=self._clock)
        self._circuit_breakers[name] = breaker
        return breaker

    def snapshots(self) -> dict[str, CircuitState]:
        return {name: cb.snapshot() for name, cb in self._circuit_breakers.items()}

    def reset(self) -> None:
        self._circuit_breakers.clear()


_default_registry: CircuitBreakerRegistry | None = None


def get_circuit_breaker(name: str) -> CircuitBreaker:
    """Breaker for ``name`` from the process-wide registry."""
    global _default_registry
    if _default_registry is None:
        _default_registry = CircuitBreakerRegistry()
    return _default_registry.get(name)


def reset_circuit_breakers() -> None:
    global _default_registry
    _default_registry = None


def with_circuit_breaker(name: str, registry: CircuitBreakerRegistry | None = None):
    """Circuit breaker decorator."""

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            cb = registry.get(name) if registry is not None else get_circuit_breaker(name)
            return await cb.execute(lambda: func(*args, **kwargs))

        return wrapper

    return decorator
