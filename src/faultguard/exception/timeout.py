# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""Timeout exception."""

from faultguard.exception.base import FaultguardException
from faultguard.exception.categories import ErrorKind


class TimeoutException(FaultguardException):
    """Timeout exception."""

    error_kind = ErrorKind.TIMEOUT
