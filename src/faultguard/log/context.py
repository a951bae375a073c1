"""
Log context for resilience events.

Fields bound with ``bind_log_context`` (which boundary, which dependency, which
retried operation) are copied onto every log record emitted inside the block.
A classified failure passed as ``extra={"error_record": record}`` fills the
``error_kind``, ``severity`` and ``error_type`` fields.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar, Token
from typing import Any

from faultguard.exception.record import ErrorRecord

CONTEXT_FIELDS: tuple[str, ...] = (
    "boundary",
    "component",
    "dependency",
    "operation_id",
    "attempt",
    "trace_id",
)

ERROR_FIELDS: tuple[str, ...] = ("error_kind", "severity", "error_type", "error")

_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "faultguard_log_context",
    default=None,
)


def get_log_context() -> dict[str, Any]:
    current = _context_var.get()
    return dict(current) if current else {}


class _ContextBinder:
    def __init__(self, token: Token) -> None:
        self._token = token

    def __enter__(self) -> _ContextBinder:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        _context_var.reset(self._token)


def bind_log_context(**fields: Any) -> _ContextBinder:
    """Merge fields into the current log context until the block exits.

    Unknown field names are ignored; ``None`` values unbind the field.
    """
    merged = get_log_context()
    for key in CONTEXT_FIELDS:
        if key not in fields:
            continue
        if fields[key] is None:
            merged.pop(key, None)
        else:
            merged[key] = fields[key]
    return _ContextBinder(_context_var.set(merged))


def _apply_error_record(record: logging.LogRecord) -> None:
    error_record = getattr(record, "error_record", None)
    if not isinstance(error_record, ErrorRecord):
        return
    if getattr(record, "error_kind", None) is None:
        record.error_kind = error_record.kind.value
    if getattr(record, "severity", None) is None:
        record.severity = error_record.severity.value
    if getattr(record, "error_type", None) is None:
        record.error_type = error_record.error_type
    # Context carried by the record (boundary, attempt, ...) fills unbound fields.
    for key in CONTEXT_FIELDS:
        if getattr(record, key, None) is None and key in error_record.context:
            setattr(record, key, error_record.context[key])


class ContextFilter(logging.Filter):
    """Adds context, event and error fields to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_log_context()
        for key in CONTEXT_FIELDS:
            if not hasattr(record, key):
                setattr(record, key, ctx.get(key))

        if not hasattr(record, "event"):
            record.event = "log"

        if not hasattr(record, "data"):
            record.data = None
        elif record.data is not None and not isinstance(record.data, dict):
            record.data = {"value": record.data}

        for field in ERROR_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, None)
        _apply_error_record(record)

        if record.exc_info and record.exc_info[0] is not None:
            if record.error_type is None:
                record.error_type = record.exc_info[0].__name__
            if record.error is None:
                record.error = str(record.exc_info[1])

        return True
