# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""Retry outcome exceptions."""

from __future__ import annotations

from faultguard.exception.base import FaultguardException


class RetryExhaustedError(FaultguardException):
    """Every allowed attempt failed.

    Carries no kind of its own: the classifier unwraps it and classifies
    ``cause`` (the last failure), keeping ``attempts`` in the record context.
    """

    def __init__(self, message: str, *, attempts: int, cause: BaseException) -> None:
        super().__init__(message, cause=cause, metadata={"attempts": attempts})
        self.attempts = attempts

    @property
    def last_error(self) -> BaseException:
        return self.cause


class RetryCancelledError(FaultguardException):
    """The caller abandoned the operation; no further attempts were scheduled."""

    recoverable = False

    def __init__(self, *, attempts: int, cause: BaseException | None = None) -> None:
        super().__init__(
            f"Retry cancelled after {attempts} attempt(s)",
            cause=cause,
            metadata={"attempts": attempts, "cancelled": True},
        )
        self.attempts = attempts
