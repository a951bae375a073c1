"""
Default fallback view.

Carries a generic, non-leaking message per error kind plus the retry action.
Raw messages and stack traces stay in the ErrorRecord sent to telemetry.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from faultguard.exception.categories import ErrorKind, Severity
from faultguard.exception.record import ErrorRecord

RetryAction = Callable[[], Any]

GENERIC_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "We couldn't reach the service. Check your connection and try again.",
    ErrorKind.TIMEOUT: "This is taking longer than expected. Please try again.",
    ErrorKind.PERMISSION: "You don't have access to this right now.",
    ErrorKind.VALIDATION: "Some of the information provided isn't valid.",
    ErrorKind.RUNTIME: "Something went wrong on our side.",
    ErrorKind.UNKNOWN: "Something went wrong.",
}


@dataclass(frozen=True, slots=True)
class FallbackView:
    """Data for the view shown in place of a failed subtree."""

    title: str
    message: str
    kind: ErrorKind
    severity: Severity
    retry: RetryAction


def default_fallback(record: ErrorRecord, retry: RetryAction) -> FallbackView:
    return FallbackView(
        title="Something went wrong",
        message=GENERIC_MESSAGES.get(record.kind, GENERIC_MESSAGES[ErrorKind.UNKNOWN]),
        kind=record.kind,
        severity=record.severity,
        retry=retry,
    )
