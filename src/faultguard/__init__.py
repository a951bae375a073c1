# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""
faultguard - error resilience framework.

Quick start:
```python
from faultguard import (
    BoundaryController,
    CircuitBreakerRegistry,
    ErrorTelemetrySink,
    faultguard_configure,
    with_circuit_breaker,
    with_retry,
)

config = faultguard_configure(retry={"max_attempts": 3, "base_delay_ms": 100})
sink = ErrorTelemetrySink(config=config.telemetry)
breakers = CircuitBreakerRegistry(config.circuit_breaker)

@with_retry(config.retry, sink=sink)
@with_circuit_breaker("profile-api", breakers)
async def load_profile() -> dict:
    ...

boundary = BoundaryController("profile", render_profile, sink=sink)
view = boundary.mount()
async with boundary.guard():
    await load_profile()
```
"""

from faultguard.boundary import (
    BoundaryController,
    BoundaryState,
    BoundaryStatus,
    FailureHub,
    FallbackView,
    default_fallback,
    failure_hub,
)
from faultguard.config import (
    FaultguardConfig,
    faultguard_configure,
    get_config,
    reset_config,
)
from faultguard.exception import (
    CircuitOpenError,
    ErrorClassifier,
    ErrorKind,
    ErrorRecord,
    FaultguardException,
    RetryCancelledError,
    RetryExhaustedError,
    Severity,
    classify,
)
from faultguard.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
    CircuitState,
    CircuitStatus,
    RetryConfig,
    RetryState,
    retry_call,
    with_circuit_breaker,
    with_retry,
    with_retry_sync,
)
from faultguard.telemetry import (
    ErrorTelemetrySink,
    HttpCollector,
    LoggingCollector,
    TelemetryConfig,
)

__all__ = [
    # config
    "FaultguardConfig",
    "faultguard_configure",
    "get_config",
    "reset_config",
    # classification
    "ErrorKind",
    "Severity",
    "ErrorRecord",
    "ErrorClassifier",
    "classify",
    "FaultguardException",
    "CircuitOpenError",
    "RetryExhaustedError",
    "RetryCancelledError",
    # retry
    "RetryConfig",
    "RetryState",
    "retry_call",
    "with_retry",
    "with_retry_sync",
    # circuit breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerRegistry",
    "CircuitState",
    "CircuitStatus",
    "with_circuit_breaker",
    # telemetry
    "TelemetryConfig",
    "ErrorTelemetrySink",
    "HttpCollector",
    "LoggingCollector",
    # boundary
    "BoundaryController",
    "BoundaryState",
    "BoundaryStatus",
    "FallbackView",
    "default_fallback",
    "FailureHub",
    "failure_hub",
]
