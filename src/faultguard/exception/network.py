# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""Network exception."""

from faultguard.exception.base import FaultguardException
from faultguard.exception.categories import ErrorKind


class NetworkException(FaultguardException):
    """Transport-level failure reaching a dependency."""

    error_kind = ErrorKind.NETWORK
