# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""Permission denied exception."""

from faultguard.exception.base import FaultguardException
from faultguard.exception.categories import ErrorKind


class PermissionDeniedException(FaultguardException):
    """Permission denied exception."""

    error_kind = ErrorKind.PERMISSION
