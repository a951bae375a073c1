# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""Validation exception."""

from __future__ import annotations

from typing import Any

from faultguard.exception.base import FaultguardException
from faultguard.exception.categories import ErrorKind


class ValidationException(FaultguardException):
    """Input or schema validation failed."""

    error_kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        cause: BaseException | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, cause=cause, metadata=metadata)
        self.field = field
        if field is not None:
            self.metadata.setdefault("field", field)
