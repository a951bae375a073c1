# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""
Error classifier.

Maps any raised value to an ErrorRecord. Structured causes (``error_kind`` on
the exception) win; type identity and message patterns are the fallback for
third-party or opaque failures. All matching rules live here so callers never
inspect messages themselves.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import re
import socket
import traceback
from collections.abc import Callable
from typing import Any

import httpx
import pydantic

from faultguard.exception.base import FaultguardException
from faultguard.exception.categories import KIND_PROFILE, ErrorKind, Severity
from faultguard.exception.record import ErrorRecord

logger = logging.getLogger(__name__)

ClassifierRule = Callable[[Any], ErrorKind | None]

_MAX_UNWRAP_DEPTH = 8


def _safe_str(value: Any) -> str:
    try:
        text = str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"
    return text or type(value).__name__


def _normalize_context(context: dict[Any, Any]) -> dict[str, Any]:
    return {str(key): value for key, value in context.items()}


class ErrorClassifier:
    """
    Error classifier.

    Rule order (first match wins): network, timeout, permission, validation,
    runtime fault, unknown.
    """

    NETWORK_PATTERNS = [
        r"network\s*(error|unreachable|is\s*down|failure)",
        r"connection\s*(reset|refused|closed|aborted|error|failed|lost)",
        r"failed\s*to\s*fetch",
        r"socket\s*hang\s*up",
        r"no\s*route\s*to\s*host",
        r"name\s*or\s*service\s*not\s*known",
        r"service\s*unavailable",
        r"bad\s*gateway",
        r"\b50[23]\b",
        r"ECONNRESET",
        r"ECONNREFUSED",
        r"ENOTFOUND",
        r"EAI_AGAIN",
    ]

    TIMEOUT_PATTERNS = [
        r"timed?\s*-?\s*out",
        r"deadline\s*exceeded",
        r"gateway\s*time-?out",
        r"\b408\b",
        r"\b504\b",
        r"ETIMEDOUT",
    ]

    PERMISSION_PATTERNS = [
        r"permission\s*denied",
        r"access\s*denied",
        r"forbidden",
        r"unauthori[sz]ed",
        r"not\s*authori[sz]ed",
        r"not\s*allowed",
        r"\b40[13]\b",
        r"EACCES",
        r"EPERM",
    ]

    VALIDATION_PATTERNS = [
        r"validation\s*(error|failed)",
        r"invalid\s*(input|request|parameter|argument|schema|format|value)",
        r"schema",
        r"malformed",
        r"bad\s*request",
        r"unprocessable",
        r"\b400\b",
        r"\b422\b",
    ]

    NETWORK_ERRNOS = frozenset(
        {
            errno.ECONNREFUSED,
            errno.ECONNRESET,
            errno.ECONNABORTED,
            errno.EHOSTUNREACH,
            errno.ENETUNREACH,
            errno.ENETDOWN,
            errno.EPIPE,
        }
    )

    RUNTIME_TYPES: tuple[type[BaseException], ...] = (
        AttributeError,
        NameError,
        ReferenceError,
        TypeError,
        KeyError,
        IndexError,
    )

    _custom_rules: list[ClassifierRule] = []

    @classmethod
    def register_rule(cls, rule: ClassifierRule) -> None:
        """Register a rule consulted before the built-in matching."""
        cls._custom_rules.append(rule)

    @classmethod
    def clear_rules(cls) -> None:
        cls._custom_rules.clear()

    @classmethod
    def classify(cls, raw_error: Any, **context: Any) -> ErrorRecord:
        """
        Classify a raised value.

        Never raises: a failure inside the classifier degrades to UNKNOWN with
        the original message preserved in the context.
        """
        try:
            return cls._classify(raw_error, context)
        except Exception as exc:
            return cls._degraded(raw_error, context, exc)

    @classmethod
    def is_recoverable(cls, raw_error: Any) -> bool:
        return cls.classify(raw_error).recoverable

    @classmethod
    def _classify(cls, raw_error: Any, context: dict[str, Any]) -> ErrorRecord:
        error, chain_context, severity, recoverable = cls._unwrap(raw_error)
        message = _safe_str(error)

        kind = cls._resolve_kind(error, message)
        default_severity, default_recoverable = KIND_PROFILE[kind]

        return ErrorRecord(
            kind=kind,
            severity=severity or default_severity,
            recoverable=default_recoverable if recoverable is None else recoverable,
            message=message,
            stack_trace=cls._format_stack(raw_error),
            context=_normalize_context({**chain_context, **context}),
            error_type=type(error).__name__,
        )

    @classmethod
    def _unwrap(
        cls, raw_error: Any
    ) -> tuple[Any, dict[str, Any], Severity | None, bool | None]:
        """Walk wrapper exceptions without a kind down to their cause."""
        error = raw_error
        chain_context: dict[str, Any] = {}
        severity: Severity | None = None
        recoverable: bool | None = None

        for _ in range(_MAX_UNWRAP_DEPTH):
            if not isinstance(error, FaultguardException):
                break
            chain_context = {**error.record_context(), **chain_context}
            if severity is None:
                severity = error.severity
            if recoverable is None:
                recoverable = error.recoverable
            if error.error_kind is not None or error.cause is None:
                break
            error = error.cause

        return error, chain_context, severity, recoverable

    @classmethod
    def _resolve_kind(cls, error: Any, message: str) -> ErrorKind:
        declared = getattr(error, "error_kind", None)
        if isinstance(declared, ErrorKind):
            return declared

        for rule in list(cls._custom_rules):
            try:
                kind = rule(error)
            except Exception as exc:
                logger.debug(
                    "Classifier rule %r failed: %s",
                    rule,
                    exc,
                    extra={"event": "classifier.rule_failed"},
                )
                continue
            if isinstance(kind, ErrorKind):
                return kind

        # Message patterns only apply to opaque failures. A runtime fault type
        # stays RUNTIME whatever its text: TypeError("connection refused") is a
        # code bug, not an outage.
        runtime_fault = isinstance(error, cls.RUNTIME_TYPES)
        text = "" if runtime_fault else message

        if cls._is_network(error) or cls._matches(cls.NETWORK_PATTERNS, text):
            return ErrorKind.NETWORK
        if cls._is_timeout(error) or cls._matches(cls.TIMEOUT_PATTERNS, text):
            return ErrorKind.TIMEOUT
        if isinstance(error, PermissionError) or cls._matches(cls.PERMISSION_PATTERNS, text):
            return ErrorKind.PERMISSION
        if isinstance(error, pydantic.ValidationError) or cls._matches(
            cls.VALIDATION_PATTERNS, text
        ):
            return ErrorKind.VALIDATION
        if runtime_fault:
            return ErrorKind.RUNTIME
        return ErrorKind.UNKNOWN

    @classmethod
    def _is_network(cls, error: Any) -> bool:
        if isinstance(error, httpx.TransportError):
            return not isinstance(error, httpx.TimeoutException)
        if isinstance(error, (ConnectionError, socket.gaierror, socket.herror)):
            return True
        return isinstance(error, OSError) and error.errno in cls.NETWORK_ERRNOS

    @staticmethod
    def _is_timeout(error: Any) -> bool:
        return isinstance(error, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException))

    @staticmethod
    def _matches(patterns: list[str], text: str) -> bool:
        if not text:
            return False
        return any(re.search(pattern, text, re.IGNORECASE) for pattern in patterns)

    @staticmethod
    def _format_stack(raw_error: Any) -> str | None:
        if not isinstance(raw_error, BaseException) or raw_error.__traceback__ is None:
            return None
        return "".join(
            traceback.format_exception(type(raw_error), raw_error, raw_error.__traceback__)
        )

    @staticmethod
    def _degraded(raw_error: Any, context: dict[Any, Any], exc: Exception) -> ErrorRecord:
        message = _safe_str(raw_error)
        severity, recoverable = KIND_PROFILE[ErrorKind.UNKNOWN]
        return ErrorRecord(
            kind=ErrorKind.UNKNOWN,
            severity=severity,
            recoverable=recoverable,
            message=message,
            context={
                **{str(key): value for key, value in context.items()},
                "original_message": message,
                "classifier_error": f"{type(exc).__name__}: {_safe_str(exc)}",
            },
            error_type=type(raw_error).__name__,
        )


def classify(raw_error: Any, **context: Any) -> ErrorRecord:
    """Classify a raised value into an ErrorRecord."""
    return ErrorClassifier.classify(raw_error, **context)
