"""
Resilience module.

- Retry decorator (exponential backoff, recoverable errors only)
- Circuit breaker (stop calling a dependency that keeps failing)

Usage:
    from faultguard.resilience import (
        with_retry,
        with_circuit_breaker,
        CircuitBreakerRegistry,
    )

    registry = CircuitBreakerRegistry()

    @with_retry(RetryConfig(max_attempts=3, base_delay_ms=100))
    @with_circuit_breaker("billing-api", registry)
    async def fetch_invoice(invoice_id: str) -> dict:
        ...
"""

from faultguard.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitState,
    CircuitStatus,
    get_circuit_breaker,
    reset_circuit_breakers,
    with_circuit_breaker,
)
from faultguard.resilience.config import (
    CircuitBreakerConfig,
    RetryConfig,
    get_circuit_breaker_config,
    get_retry_config,
)
from faultguard.resilience.retry import (
    RetryState,
    calculate_retry_delay,
    retry_call,
    with_retry,
    with_retry_sync,
)

__all__ = [
    # config
    "RetryConfig",
    "CircuitBreakerConfig",
    "get_retry_config",
    "get_circuit_breaker_config",
    # retry
    "RetryState",
    "calculate_retry_delay",
    "retry_call",
    "with_retry",
    "with_retry_sync",
    # circuit breaker
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    "CircuitStatus",
    "get_circuit_breaker",
    "reset_circuit_breakers",
    "with_circuit_breaker",
]
