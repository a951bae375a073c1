# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""
Process-wide failure hub.

Explicit subscription interface for failures raised outside the normal call
stack (unhandled task exceptions, uncaught errors). Boundaries register on
mount; a dispatched failure is offered to them in registration order and the
first HEALTHY boundary that accepts it stops propagation. If that boundary's
fallback raises, the new exception is dispatched to the boundaries still
HEALTHY, and raised when none of them takes it.

Known limitation: there is no call-stack association, so with nested
boundaries the failure lands on the outermost active one, not necessarily the
subtree that caused it.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from types import TracebackType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from faultguard.boundary.controller import BoundaryController

logger = logging.getLogger(__name__)


class FailureHub:
    """Routes global failures to registered boundaries."""

    def __init__(self) -> None:
        self._boundaries: list[BoundaryController] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._previous_loop_handler: Any = None
        self._previous_excepthook: Any = None

    @property
    def boundaries(self) -> tuple[BoundaryController, ...]:
        return tuple(self._boundaries)

    def register(self, boundary: BoundaryController) -> None:
        if boundary not in self._boundaries:
            self._boundaries.append(boundary)

    def unregister(self, boundary: BoundaryController) -> None:
        if boundary in self._boundaries:
            self._boundaries.remove(boundary)

    def dispatch(self, error: BaseException, *, channel: str = "async") -> bool:
        """
        Offer ``error`` to boundaries in registration order.

        When the accepting boundary's fallback raises, that exception is offered
        to the boundaries still HEALTHY; it is raised if none of them takes it.
        """
        for boundary in list(self._boundaries):
            try:
                accepted = boundary.accept(error, channel=channel)
            except Exception as fallback_error:
                logger.warning(
                    "[FailureHub] fallback of boundary %s failed: %s",
                    boundary.name,
                    fallback_error,
                    extra={"event": "hub.fallback_failed", "boundary": boundary.name},
                )
                if self.dispatch(fallback_error, channel="fallback"):
                    return True
                raise
            if accepted:
                return True
        logger.warning(
            "[FailureHub] no healthy boundary accepted %s: %s",
            type(error).__name__,
            error,
            extra={"event": "hub.unhandled"},
        )
        return False

    # === asyncio loop hook ===

    def install(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Route unhandled exceptions of ``loop`` (default: running loop) here."""
        loop = loop or asyncio.get_running_loop()
        if self._loop is loop:
            return
        if self._loop is not None:
            self.uninstall()
        self._loop = loop
        self._previous_loop_handler = loop.get_exception_handler()
        loop.set_exception_handler(self._handle_loop_exception)

    def uninstall(self) -> None:
        if self._loop is None:
            return
        self._loop.set_exception_handler(self._previous_loop_handler)
        self._loop = None
        self._previous_loop_handler = None

    def _handle_loop_exception(
        self,
        loop: asyncio.AbstractEventLoop,
        context: dict[str, Any],
    ) -> None:
        error = context.get("exception")
        if isinstance(error, Exception):
            try:
                if self.dispatch(error, channel="async"):
                    return
            except Exception as fallback_error:
                context = {
                    **context,
                    "message": f"Boundary fallback failed while handling {type(error).__name__}",
                    "exception": fallback_error,
                }
        if self._previous_loop_handler is not None:
            self._previous_loop_handler(loop, context)
        else:
            loop.default_exception_handler(context)

    # === sys.excepthook ===

    def install_excepthook(self) -> None:
        if self._previous_excepthook is not None:
            return
        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._excepthook

    def uninstall_excepthook(self) -> None:
        if self._previous_excepthook is None:
            return
        sys.excepthook = self._previous_excepthook
        self._previous_excepthook = None

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        if issubclass(exc_type, Exception):
            try:
                if self.dispatch(exc, channel="uncaught"):
                    return
            except Exception as fallback_error:
                exc = fallback_error
                exc_type, tb = type(exc), exc.__traceback__
        previous = self._previous_excepthook or sys.__excepthook__
        previous(exc_type, exc, tb)


failure_hub = FailureHub()
