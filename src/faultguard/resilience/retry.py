"""
Retry with exponential backoff.

Only recoverable failures are retried. The delay before retry k (1-based) is
``base_delay_ms * exponential_base ** (k - 1)``; attempts are strictly
sequential and the operation runs at most ``max_attempts + 1`` times.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import wraps
from typing import TYPE_CHECKING, Any, ParamSpec, Protocol, TypeVar

from faultguard.exception.classifier import ErrorClassifier
from faultguard.exception.record import ErrorRecord
from faultguard.exception.retry import RetryCancelledError, RetryExhaustedError
from faultguard.log.context import bind_log_context
from faultguard.resilience.config import RetryConfig, get_retry_config

if TYPE_CHECKING:
    from faultguard.telemetry.sink import ErrorTelemetrySink

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class RetryConfigLike(Protocol):
    """Anything carrying the backoff parameters."""

    base_delay_ms: int
    max_delay_ms: int | None
    exponential_base: float
    jitter: bool


def calculate_retry_delay(config: RetryConfigLike, attempt: int) -> float:
    """
    Delay in seconds before the retry that follows ``attempt`` (0-based).

    Exponential backoff, optionally capped and jittered.
    """
    delay_ms = config.base_delay_ms * (config.exponential_base**attempt)
    if config.max_delay_ms is not None:
        delay_ms = min(delay_ms, config.max_delay_ms)

    if config.jitter:
        jitter_range = delay_ms * 0.25
        delay_ms += random.uniform(-jitter_range, jitter_range)

    return max(delay_ms / 1000.0, 0.0)


@dataclass
class RetryState:
    """Attempt counter for one invocation of a wrapped operation."""

    max_attempts: int
    attempt: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    @property
    def invocations(self) -> int:
        return self.attempt + 1

    def advance(self) -> None:
        if self.exhausted:
            raise RuntimeError(
                f"RetryState exhausted: attempt={self.attempt} max_attempts={self.max_attempts}"
            )
        self.attempt += 1


async def _wait_backoff(delay: float, cancel_event: asyncio.Event | None) -> bool:
    """Sleep for ``delay``; return False if ``cancel_event`` fired first."""
    if cancel_event is None:
        await asyncio.sleep(delay)
        return True
    if cancel_event.is_set():
        return False
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return True
    return False


def _report(
    sink: ErrorTelemetrySink | None,
    record: ErrorRecord,
    error: BaseException,
) -> None:
    if sink is None:
        return
    sink.report(record)
    sink.mark_reported(error)


def with_retry(
    retry_config: RetryConfig | None = None,
    *,
    max_attempts: int | None = None,
    on_retry: Callable[[int, Exception], None] | None = None,
    sink: ErrorTelemetrySink | None = None,
    cancel_event: asyncio.Event | None = None,
    operation_id: str | None = None,
):
    """
    Async retry decorator.

    Args:
        retry_config: backoff parameters (global config when None)
        max_attempts: override for ``retry_config.max_attempts``
        on_retry: called with (retry number, error) before each backoff
        sink: receives the terminal failure (and every attempt when
            ``report_attempts`` is set)
        cancel_event: setting it abandons the call; the pending backoff is
            cleared and ``RetryCancelledError`` is raised. The event belongs to
            the decorator, so it abandons every in-flight call of the decorated
            function; use ``retry_call(..., cancel_event=...)`` to cancel a
            single call
        operation_id: tag for logs and error records

    Cancelling the awaiting task has the same effect: the backoff sleep is
    interrupted and nothing further is scheduled.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        op_id = operation_id or getattr(func, "__qualname__", repr(func))

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            config = retry_config or get_retry_config()
            state = RetryState(
                max_attempts=max_attempts if max_attempts is not None else config.max_attempts
            )

            with bind_log_context(operation_id=op_id):
                while True:
                    try:
                        return await func(*args, **kwargs)
                    except Exception as e:
                        record = ErrorClassifier.classify(
                            e, operation_id=op_id, attempt=state.attempt
                        )

                        if not record.recoverable:
                            logger.warning(
                                "[Retry] non-recoverable %s error, failing fast | error=%s",
                                record.kind.value,
                                record.message,
                                extra={
                                    "event": "retry.fail_fast",
                                    "attempt": state.attempt,
                                    "error_record": record,
                                },
                            )
                            _report(sink, record, e)
                            raise

                        if state.exhausted:
                            logger.error(
                                "[Retry] attempts exhausted | attempts=%s | error=%s",
                                state.invocations,
                                record.message,
                                extra={
                                    "event": "retry.exhausted",
                                    "attempt": state.attempt,
                                    "error_record": record,
                                },
                            )
                            exhausted = RetryExhaustedError(
                                f"{op_id} failed after {state.invocations} attempt(s): {record.message}",
                                attempts=state.invocations,
                                cause=e,
                            )
                            _report(sink, record.with_context(attempts=state.invocations), exhausted)
                            raise exhausted from e

                        if sink is not None and config.report_attempts:
                            sink.report(record)

                        delay = calculate_retry_delay(config, state.attempt)
                        state.advance()
                        logger.warning(
                            "[Retry] attempt %s/%s failed, retrying in %.3fs | error=%s",
                            state.attempt,
                            state.max_attempts,
                            delay,
                            record.message,
                            extra={
                                "event": "retry.scheduled",
                                "attempt": state.attempt,
                                "error_record": record,
                            },
                        )

                        if on_retry:
                            on_retry(state.attempt, e)

                        if not await _wait_backoff(delay, cancel_event):
                            logger.info(
                                "[Retry] cancelled during backoff",
                                extra={"event": "retry.cancelled", "attempt": state.attempt},
                            )
                            raise RetryCancelledError(attempts=state.attempt, cause=e) from e

        return wrapper

    return decorator


async def retry_call(
    operation: Callable[[], Awaitable[T]],
    retry_config: RetryConfig | None = None,
    **options: Any,
) -> T:
    """
    Run a zero-argument async operation under ``with_retry``.

    Options are bound to this call only, so a ``cancel_event`` passed here
    abandons just this invocation.
    """
    return await with_retry(retry_config, **options)(operation)()


def with_retry_sync(
    retry_config: RetryConfig | None = None,
    *,
    max_attempts: int | None = None,
    on_retry: Callable[[int, Exception], None] | None = None,
    sink: ErrorTelemetrySink | None = None,
):
    """
    Synchronous retry decorator (blocks while backing off).
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        op_id = getattr(func, "__qualname__", repr(func))

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            config = retry_config or get_retry_config()
            state = RetryState(
                max_attempts=max_attempts if max_attempts is not None else config.max_attempts
            )

            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    record = ErrorClassifier.classify(e, operation_id=op_id, attempt=state.attempt)

                    if not record.recoverable:
                        _report(sink, record, e)
                        raise

                    if state.exhausted:
                        exhausted = RetryExhaustedError(
                            f"{op_id} failed after {state.invocations} attempt(s): {record.message}",
                            attempts=state.invocations,
                            cause=e,
                        )
                        _report(sink, record.with_context(attempts=state.invocations), exhausted)
                        raise exhausted from e

                    delay = calculate_retry_delay(config, state.attempt)
                    state.advance()
                    logger.warning(
                        "[Retry] attempt %s/%s failed, retrying in %.3fs | func=%s | error=%s",
                        state.attempt,
                        state.max_attempts,
                        delay,
                        op_id,
                        record.message,
                        extra={
                            "event": "retry.scheduled",
                            "attempt": state.attempt,
                            "error_record": record,
                        },
                    )

                    if on_retry:
                        on_retry(state.attempt, e)

                    time.sleep(delay)

        return wrapper

    return decorator
