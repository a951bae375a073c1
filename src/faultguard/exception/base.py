# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""
Exception base types.
"""

from __future__ import annotations

from typing import Any, ClassVar

from faultguard.exception.categories import ErrorKind, Severity


class FaultguardException(Exception):
    """Framework base exception.

    Subclasses that know their own cause set ``error_kind`` so the classifier
    never has to guess from the message. ``severity`` and ``recoverable``
    override the defaults of the kind when not None.
    """

    error_kind: ClassVar[ErrorKind | None] = None
    severity: ClassVar[Severity | None] = None
    recoverable: ClassVar[bool | None] = None

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.metadata = metadata or {}

    def record_context(self) -> dict[str, Any]:
        """Fields copied into the ErrorRecord context."""
        return dict(self.metadata)
