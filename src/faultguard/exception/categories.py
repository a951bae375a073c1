# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""
Error taxonomy.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """What went wrong."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    PERMISSION = "permission"
    VALIDATION = "validation"
    RUNTIME = "runtime"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """How bad it is."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# kind -> (severity, recoverable)
KIND_PROFILE: dict[ErrorKind, tuple[Severity, bool]] = {
    ErrorKind.NETWORK: (Severity.HIGH, True),
    ErrorKind.TIMEOUT: (Severity.MEDIUM, True),
    ErrorKind.PERMISSION: (Severity.MEDIUM, True),
    ErrorKind.VALIDATION: (Severity.LOW, False),
    ErrorKind.RUNTIME: (Severity.HIGH, False),
    # Optimistic: one more try beats blocking the user for good.
    ErrorKind.UNKNOWN: (Severity.MEDIUM, True),
}
