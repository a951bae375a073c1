# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""Configuration exception."""

from faultguard.exception.base import FaultguardException
from faultguard.exception.categories import ErrorKind


class ConfigurationError(FaultguardException):
    """Configuration error."""

    error_kind = ErrorKind.VALIDATION
