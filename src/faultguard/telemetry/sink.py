# -*- coding: utf-8 -*-
# @author Sunny
# @date 2026-10-18
"""
Error telemetry sink.

Buffers ErrorRecords in a bounded FIFO queue and forwards them to a collector
in batches. ``report`` never blocks and never raises. A batch that fails to
deliver is requeued once; on a second failure its records are dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import Counter, deque
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any

from faultguard.exception.categories import ErrorKind, Severity
from faultguard.exception.record import ErrorRecord
from faultguard.telemetry.collector import ErrorCollector, build_collector
from faultguard.telemetry.config import TelemetryConfig

logger = logging.getLogger(__name__)

_REPORTED_ATTR = "_faultguard_reported"


def mark_reported(error: BaseException) -> None:
    """Flag an exception whose record already reached a sink."""
    setattr(error, _REPORTED_ATTR, True)


def is_reported(error: BaseException) -> bool:
    return bool(getattr(error, _REPORTED_ATTR, False))


@dataclass(slots=True)
class _QueuedRecord:
    record: ErrorRecord
    requeued: bool = False


@dataclass(frozen=True, slots=True)
class SinkStats:
    """Sink counters since creation."""

    reported: int
    flushed: int
    evicted: int
    dropped: int
    queued: int


class ErrorTelemetrySink:
    """
    Error telemetry sink.

    Flush triggers:
    - periodic, every ``flush_interval_ms`` once ``start()`` was awaited
    - batch size, when the queue reaches ``batch_size`` records
    - explicit ``flush()`` / ``aclose()``
    """

    def __init__(
        self,
        collector: ErrorCollector | None = None,
        config: TelemetryConfig | None = None,
    ) -> None:
        if config is None:
            from faultguard.config import get_config

            config = get_config().telemetry
        self.config = config
        self._collector = collector or build_collector(config)

        self._queue: deque[_QueuedRecord] = deque()
        self._recent: deque[ErrorRecord] = deque(maxlen=config.recent_window)
        self._flush_lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()
        self._periodic: asyncio.Task | None = None

        self._reported = 0
        self._flushed = 0
        self._evicted = 0
        self._dropped = 0

    @property
    def capacity(self) -> int:
        return self.config.queue_capacity

    def __len__(self) -> int:
        return len(self._queue)

    def mark_reported(self, error: BaseException) -> None:
        mark_reported(error)

    def is_reported(self, error: BaseException) -> bool:
        return is_reported(error)

    def report(self, record: ErrorRecord) -> None:
        """Enqueue a record. Never blocks, never raises."""
        try:
            self._reported += 1
            self._recent.append(record)
            if not self.config.enabled:
                return

            if len(self._queue) >= self.capacity:
                self._queue.popleft()
                self._evicted += 1
            self._queue.append(_QueuedRecord(record))

            if len(self._queue) >= self.config.batch_size:
                self._schedule_flush()
        except Exception:
            logger.exception(
                "[Telemetry] failed to enqueue error record",
                extra={"event": "telemetry.report_failed"},
            )

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the next periodic or explicit flush picks the batch up.
            return
        # A scheduled flush takes everything queued by the time it runs.
        if self._pending or self._flush_lock.locked():
            return
        task = loop.create_task(self.flush())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> int:
        """
        Deliver the records queued when the flush started.

        Returns the number of records delivered. Stops at the first failed batch.
        """
        async with self._flush_lock:
            delivered = 0
            remaining = len(self._queue)
            while remaining > 0 and self._queue:
                size = min(self.config.batch_size, remaining, len(self._queue))
                batch = [self._queue.popleft() for _ in range(size)]
                remaining -= size
                try:
                    await self._collector.send([item.record.to_payload() for item in batch])
                except Exception as e:
                    self._requeue(batch)
                    logger.warning(
                        "[Telemetry] flush failed, %s record(s) affected | error=%s",
                        len(batch),
                        e,
                        extra={"event": "telemetry.flush_failed"},
                    )
                    return delivered
                delivered += size
                self._flushed += size
            return delivered

    def _requeue(self, batch: list[_QueuedRecord]) -> None:
        retry = [replace(item, requeued=True) for item in batch if not item.requeued]
        self._dropped += len(batch) - len(retry)
        # Requeued records are the oldest, so they go back in front.
        self._queue.extendleft(reversed(retry))
        while len(self._queue) > self.capacity:
            self._queue.popleft()
            self._evicted += 1

    async def start(self) -> None:
        """Start the periodic flush task on the running loop."""
        if self._periodic is not None and not self._periodic.done():
            return
        self._periodic = asyncio.create_task(self._run_periodic())

    async def _run_periodic(self) -> None:
        interval = self.config.flush_interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval)
            await self.flush()

    async def aclose(self) -> None:
        """Stop the periodic task, deliver what is left and close the collector."""
        if self._periodic is not None:
            self._periodic.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._periodic
            self._periodic = None
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self.flush()
        await self._collector.aclose()

    # === Local diagnostics ===

    def recent_errors(
        self,
        limit: int | None = None,
        within_ms: int | None = None,
    ) -> list[ErrorRecord]:
        """Recent records, oldest first."""
        records = list(self._recent)
        if within_ms is not None:
            cutoff = datetime.now(timezone.utc) - timedelta(milliseconds=within_ms)
            records = [r for r in records if r.timestamp >= cutoff]
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records

    def severity_distribution(self) -> dict[Severity, int]:
        counts = Counter(record.severity for record in self._recent)
        return {severity: counts.get(severity, 0) for severity in Severity}

    def kind_distribution(self) -> dict[ErrorKind, int]:
        counts = Counter(record.kind for record in self._recent)
        return {kind: counts.get(kind, 0) for kind in ErrorKind}

    def stats(self) -> SinkStats:
        return SinkStats(
            reported=self._reported,
            flushed=self._flushed,
            evicted=self._evicted,
            dropped=self._dropped,
            queued=len(self._queue),
        )

    def diagnostics(self) -> dict[str, Any]:
        """Snapshot for local triage (e.g. a debug endpoint)."""
        stats = self.stats()
        return {
            "stats": {
                "reported": stats.reported,
                "flushed": stats.flushed,
                "evicted": stats.evicted,
                "dropped": stats.dropped,
                "queued": stats.queued,
            },
            "severity": {k.value: v for k, v in self.severity_distribution().items()},
            "kind": {k.value: v for k, v in self.kind_distribution().items()},
        }
