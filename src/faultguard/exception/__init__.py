# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""Unified exports for the error taxonomy and classifier."""

from faultguard.exception.base import FaultguardException
from faultguard.exception.categories import KIND_PROFILE, ErrorKind, Severity
from faultguard.exception.circuit_open import CircuitOpenError
from faultguard.exception.classifier import ErrorClassifier, classify
from faultguard.exception.configuration import ConfigurationError
from faultguard.exception.network import NetworkException
from faultguard.exception.permission_denied import PermissionDeniedException
from faultguard.exception.record import ErrorRecord
from faultguard.exception.retry import RetryCancelledError, RetryExhaustedError
from faultguard.exception.timeout import TimeoutException
from faultguard.exception.validation import ValidationException

__all__ = [
    "ErrorKind",
    "Severity",
    "KIND_PROFILE",
    "ErrorRecord",
    "FaultguardException",
    "NetworkException",
    "TimeoutException",
    "PermissionDeniedException",
    "ValidationException",
    "ConfigurationError",
    "CircuitOpenError",
    "RetryExhaustedError",
    "RetryCancelledError",
    "ErrorClassifier",
    "classify",
]
