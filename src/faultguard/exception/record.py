# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""
ErrorRecord: the immutable result of classifying a failure.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from faultguard.exception.categories import ErrorKind, Severity


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (ErrorKind, Severity)):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return repr(value)


class ErrorRecord(BaseModel):
    """Classified failure, created once and never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: ErrorKind
    severity: Severity
    recoverable: bool
    message: str
    stack_trace: str | None = Field(default=None, serialization_alias="stackTrace")
    timestamp: datetime = Field(default_factory=_utc_now)
    context: dict[str, Any] = Field(default_factory=dict)
    error_type: str | None = Field(default=None, serialization_alias="errorType")

    @field_serializer("context")
    def _serialize_context(self, context: dict[str, Any]) -> dict[str, Any]:
        return _jsonable(context)

    def with_context(self, **fields: Any) -> ErrorRecord:
        """Return a copy with extra context merged in."""
        return self.model_copy(update={"context": {**self.context, **fields}})

    def to_payload(self) -> dict[str, Any]:
        """Wire shape sent to the collector."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
