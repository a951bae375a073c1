"""
Resilience configuration.

Retry and circuit breaker settings, consumed from ``FaultguardConfig`` or passed
explicitly to the decorators.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from faultguard.exception.categories import ErrorKind


class RetryConfig(BaseModel):
    """Retry configuration."""

    max_attempts: int = Field(default=3, ge=0, description="Retries after the first call")
    base_delay_ms: int = Field(default=100, ge=0, description="Delay before the first retry (ms)")
    max_delay_ms: int | None = Field(default=None, gt=0, description="Upper bound for one delay (ms)")
    exponential_base: float = Field(default=2.0, ge=1.0, description="Backoff multiplier")
    jitter: bool = Field(default=False, description="Spread delays by +/-25%")
    report_attempts: bool = Field(
        default=False,
        description="Report every failed attempt to telemetry, not only the terminal one",
    )


class CircuitBreakerConfig(BaseModel):
    """Circuit breaker configuration."""

    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures that open the circuit",
    )
    reset_timeout_ms: int = Field(
        default=30000,
        gt=0,
        description="Time an open circuit waits before letting a trial call through (ms)",
    )
    ignored_kinds: frozenset[ErrorKind] = Field(
        default_factory=frozenset,
        description="Error kinds that do not count toward the threshold",
    )


def get_retry_config() -> RetryConfig:
    """Retry configuration from the global config."""
    from faultguard.config import get_config

    return get_config().retry


def get_circuit_breaker_config() -> CircuitBreakerConfig:
    """Circuit breaker configuration from the global config."""
    from faultguard.config import get_config

    return get_config().circuit_breaker
