# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""
Boundary controller.

Supervises a subtree of application work. Render failures are caught directly;
failures of async work arrive through ``guard()`` or the failure hub. While
FAILED the subtree is replaced by ``fallback(record, retry)``; ``retry()``
clears the state and remounts the subtree.

A failure raised by the fallback itself is not caught by the same boundary; it
propagates to the next outer boundary (or out of the application).
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from faultguard.boundary.fallback import RetryAction, default_fallback
from faultguard.boundary.hub import FailureHub, failure_hub
from faultguard.exception.classifier import ErrorClassifier
from faultguard.exception.record import ErrorRecord
from faultguard.log.context import bind_log_context
from faultguard.telemetry.sink import ErrorTelemetrySink, is_reported, mark_reported

logger = logging.getLogger(__name__)

V = TypeVar("V")

FallbackRenderer = Callable[[ErrorRecord, RetryAction], Any]


class BoundaryStatus(str, Enum):
    """Boundary status."""

    HEALTHY = "healthy"
    FAILED = "failed"


@dataclass
class BoundaryState:
    """Per-mount error state of a boundary."""

    has_error: bool = False
    current_error: ErrorRecord | None = None

    def fail(self, record: ErrorRecord) -> None:
        self.has_error = True
        self.current_error = record

    def clear(self) -> None:
        self.has_error = False
        self.current_error = None


class BoundaryController(Generic[V]):
    """
    Error boundary around one subtree.

    Args:
        name: boundary name (logs, error record context)
        subtree: mount/render function of the supervised subtree
        fallback: ``(ErrorRecord, retry) -> view`` shown while FAILED
        sink: telemetry sink receiving caught failures
        parent: enclosing boundary, receives failures this one cannot take
        hub: failure hub for global async failures (process-wide by default)
        on_error: called with the record after a failure is caught
        on_reset: called after a retry cleared the state, before remount
    """

    def __init__(
        self,
        name: str,
        subtree: Callable[[], V],
        fallback: FallbackRenderer = default_fallback,
        *,
        sink: ErrorTelemetrySink | None = None,
        parent: BoundaryController | None = None,
        hub: FailureHub | None = None,
        on_error: Callable[[ErrorRecord], None] | None = None,
        on_reset: Callable[[], None] | None = None,
    ) -> None:
        self.name = name
        self.parent = parent
        self._subtree = subtree
        self._fallback = fallback
        self._sink = sink
        self._hub = hub or failure_hub
        self._on_error = on_error
        self._on_reset = on_reset
        self._children: list[BoundaryController] = []
        self._state: BoundaryState | None = None
        self.view: Any = None

    def child(
        self,
        name: str,
        subtree: Callable[[], Any],
        fallback: FallbackRenderer = default_fallback,
        **kwargs: Any,
    ) -> BoundaryController:
        """Nested boundary sharing this boundary's sink and hub."""
        kwargs.setdefault("sink", self._sink)
        kwargs.setdefault("hub", self._hub)
        return BoundaryController(name, subtree, fallback, parent=self, **kwargs)

    @property
    def mounted(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> BoundaryState | None:
        return self._state

    @property
    def status(self) -> BoundaryStatus:
        if self._state is not None and self._state.has_error:
            return BoundaryStatus.FAILED
        return BoundaryStatus.HEALTHY

    @property
    def current_error(self) -> ErrorRecord | None:
        return self._state.current_error if self._state is not None else None

    # === Lifecycle ===

    def mount(self) -> Any:
        """Create the state, subscribe to the hub and render."""
        if self._state is None:
            self._state = BoundaryState()
            self._hub.register(self)
            if self.parent is not None and self not in self.parent._children:
                self.parent._children.append(self)
            logger.debug(
                "[Boundary:%s] mounted",
                self.name,
                extra={"event": "boundary.mounted", "boundary": self.name},
            )
        return self.render()

    def unmount(self) -> None:
        """Unmount nested boundaries, unsubscribe and drop the state."""
        self._unmount_children()
        if self.parent is not None and self in self.parent._children:
            self.parent._children.remove(self)
        if self._state is None:
            return
        self._hub.unregister(self)
        self._state = None
        self.view = None
        logger.debug(
            "[Boundary:%s] unmounted",
            self.name,
            extra={"event": "boundary.unmounted", "boundary": self.name},
        )

    def render(self) -> Any:
        """Render the subtree, or the fallback while FAILED."""
        state = self._require_state()
        if state.has_error:
            self.view = None
            self.view = self._render_fallback()
            return self.view

        # Boundaries nested in the previous render belong to a discarded subtree.
        self._unmount_children()
        try:
            view = self._subtree()
        except Exception as e:
            self._catch(e, channel="render")
            self.view = None
            view = self._render_fallback()
        self.view = view
        return view

    def retry(self) -> Any:
        """User-triggered recovery: clear the error and remount the subtree."""
        state = self._require_state()
        if not state.has_error:
            return self.view

        state.clear()
        logger.info(
            "[Boundary:%s] FAILED -> HEALTHY (retry)",
            self.name,
            extra={"event": "boundary.retry", "boundary": self.name},
        )
        if self._on_reset:
            self._on_reset()
        return self.render()

    # === Failure channels ===

    def accept(self, error: BaseException, *, channel: str = "async") -> bool:
        """
        Take ``error`` if this boundary is mounted and HEALTHY.

        An exception raised by the fallback propagates to the caller; the
        boundary stays FAILED with no view.
        """
        if self._state is None or self._state.has_error:
            return False
        self._catch(error, channel=channel)
        self.view = None
        self.view = self._render_fallback()
        return True

    def handle_error(self, error: BaseException, *, channel: str = "async") -> bool:
        """
        Hand ``error`` to the nearest HEALTHY boundary, starting here.

        A failing fallback hands its own exception on to the enclosing
        boundaries; it is raised if none of them takes it.
        """
        unhandled: Exception | None = None
        boundary: BoundaryController | None = self
        while boundary is not None:
            try:
                if boundary.accept(error, channel=channel):
                    return True
            except Exception as fallback_error:
                error = unhandled = fallback_error
                channel = "fallback"
            boundary = boundary.parent
        if unhandled is not None:
            raise unhandled
        return False

    @contextlib.asynccontextmanager
    async def guard(self) -> AsyncIterator[BoundaryController]:
        """
        Supervise async work belonging to the subtree.

        ```python
        async with boundary.guard():
            await load_profile()
        ```
        """
        try:
            yield self
        except Exception as e:
            if not self.handle_error(e, channel="async"):
                raise

    # === Internals ===

    def _unmount_children(self) -> None:
        for child in list(self._children):
            child.unmount()

    def _require_state(self) -> BoundaryState:
        if self._state is None:
            raise RuntimeError(f"Boundary {self.name} is not mounted")
        return self._state

    def _render_fallback(self) -> Any:
        state = self._require_state()
        return self._fallback(state.current_error, self.retry)

    def _catch(self, error: BaseException, *, channel: str) -> None:
        state = self._require_state()
        record = ErrorClassifier.classify(error, boundary=self.name, channel=channel)
        state.fail(record)

        # The failed subtree is gone, and with it any nested boundary.
        self._unmount_children()

        with bind_log_context(boundary=self.name):
            logger.warning(
                "[Boundary:%s] HEALTHY -> FAILED (%s) | kind=%s | error=%s",
                self.name,
                channel,
                record.kind.value,
                record.message,
                extra={"event": "boundary.caught", "error_record": record},
            )

        if self._sink is not None and not is_reported(error):
            self._sink.report(record)
            mark_reported(error)

        if self._on_error:
            self._on_error(record)
