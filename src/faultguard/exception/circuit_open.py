# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""Circuit open exception."""

from __future__ import annotations

from faultguard.exception.base import FaultguardException
from faultguard.exception.categories import ErrorKind, Severity


class CircuitOpenError(FaultguardException):
    """Raised when a call is short-circuited; the dependency was not even tried."""

    error_kind = ErrorKind.NETWORK
    severity = Severity.HIGH
    # Retrying inside the cooldown window cannot succeed.
    recoverable = False

    def __init__(
        self,
        name: str,
        message: str | None = None,
        *,
        retry_after_ms: float | None = None,
    ) -> None:
        super().__init__(
            message or f"Dependency {name} is circuit open; try again later",
            metadata={
                "dependency": name,
                "circuit_open": True,
                "retry_after_ms": retry_after_ms,
            },
        )
        self.name = name
        self.retry_after_ms = retry_after_ms
