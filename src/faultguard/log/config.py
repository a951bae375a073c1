from __future__ import annotations

import logging
from typing import IO

from faultguard.log.context import CONTEXT_FIELDS, ContextFilter

_LOGGER_NAME = "faultguard"
_HANDLER_FLAG = "_faultguard_log_handler"

_LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-5s %(name)s - %(fields)s%(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Printed in this order; unset fields are left out of the line.
_LINE_FIELDS: tuple[str, ...] = ("event", *CONTEXT_FIELDS, "error_kind", "severity")


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


class ResilienceFormatter(logging.Formatter):
    """Formatter rendering bound context as ``[event=... dependency=...]``."""

    def format(self, record: logging.LogRecord) -> str:
        pairs = [
            f"{key}={getattr(record, key)}"
            for key in _LINE_FIELDS
            if getattr(record, key, None) is not None
        ]
        record.fields = f"[{' '.join(pairs)}] " if pairs else ""
        return super().format(record)


def _ensure_handler(logger: logging.Logger, level: int, stream: IO[str] | None) -> logging.Handler:
    for handler in logger.handlers:
        if getattr(handler, _HANDLER_FLAG, False):
            handler.setLevel(level)
            if stream is not None and isinstance(handler, logging.StreamHandler):
                handler.setStream(stream)
            return handler

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(ResilienceFormatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))
    handler.addFilter(ContextFilter())
    setattr(handler, _HANDLER_FLAG, True)
    logger.addHandler(handler)
    return handler


def setup_logging(level: str | int = "INFO", *, stream: IO[str] | None = None) -> logging.Logger:
    """Attach the framework handler to the ``faultguard`` logger.

    Calling it again only updates the level (and the stream, when given).
    """
    logger = logging.getLogger(_LOGGER_NAME)
    parsed_level = _parse_level(level)
    logger.setLevel(parsed_level)
    logger.propagate = False
    _ensure_handler(logger, parsed_level, stream)
    return logger
