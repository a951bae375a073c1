# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
from faultguard.log.config import ResilienceFormatter, setup_logging
from faultguard.log.context import ContextFilter, bind_log_context, get_log_context

__all__ = [
    "setup_logging",
    "ResilienceFormatter",
    "ContextFilter",
    "bind_log_context",
    "get_log_context",
]
